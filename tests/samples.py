# tests/samples.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""Struct types shared by the test suite."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from reflector import Pointer, embed, pointer_receiver, tagged


@dataclass
class Address:
    street: str = tagged('tag:"be" tag2:"1,2,3"', default="")
    number: int = tagged('tag:"bi"', default=0)


@dataclass
class Person:
    name: str = tagged('tag:"bu"', default="")
    address: Address = embed(Address)

    def add(self, a: int, b: int, c: int) -> int:
        return a + b + c

    @pointer_receiver
    def subtract(self, a: int, b: int) -> int:
        return a - b

    def returns_error(self, err: bool) -> Tuple[str, Optional[int], Optional[Exception]]:
        if err:
            return "", None, ValueError("error here")
        return "jen", 2, None

    def hi(self, name: str) -> str:
        return f"Hi {name} my name is {self.name}"


@dataclass
class Company:
    address: Address = embed(Address)
    number: int = tagged('tag:"bi"', default=0)


@dataclass
class Employee:
    person: Person = embed(Person)
    salary: int = 0


class CustomType(int):
    def method1(self) -> str:
        return "yep"

    @pointer_receiver
    def method2(self) -> int:
        return 7


@dataclass
class Inner:
    ccc: int = 0
    ddd: float = 0.0


@dataclass
class WithInnerStruct:
    aaa: str = ""
    bbb: Inner = field(default_factory=Inner)


@dataclass
class Hidden:
    _: str = tagged('bu:"ba"', default="")
    exported: str = ""
    _unexported: int = tagged('a:"1" b:"2"', default=0)


@dataclass
class Left:
    x: int = 0
    left_only: int = 0


@dataclass
class Right:
    x: int = 0


@dataclass
class Both:
    left: Left = embed(Left)
    right: Right = embed(Right)


@dataclass
class Counter:
    count: int = embed(int)
    label: str = ""


@dataclass(frozen=True)
class Frozen:
    value: int = 0


@dataclass
class Node:
    label: str = ""
    parent: Optional["Node"] = None
    owner: Pointer[Person] = field(default_factory=lambda: Pointer.null(Person))
    children: List["Node"] = field(default_factory=list)
    attrs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Required:
    name: str
    count: int
    tags: List[str]
    address: Address
    ref: Pointer[Address]


@dataclass
class Calculator:
    offset: int = 0

    def total(self, *values: int) -> int:
        return self.offset + sum(values)

    def bump(self) -> int:
        self.offset += 1
        return self.offset

    def nothing(self) -> None:
        self.offset += 0

    def untyped(self, x):
        return x

    def explode(self) -> int:
        raise RuntimeError("boom")

    @staticmethod
    def helper() -> int:
        return 1

    @property
    def doubled(self) -> int:
        return self.offset * 2

    def _private(self) -> int:
        return 0


@dataclass
class Base:
    x: int = 0


@dataclass
class LeftBase:
    base: Base = embed(Base)


@dataclass
class RightBase:
    base: Base = embed(Base)


@dataclass
class Diamond:
    left: LeftBase = embed(LeftBase)
    right: RightBase = embed(RightBase)


@dataclass
class ShallowDiamond:
    left: LeftBase = embed(LeftBase)
    right: RightBase = embed(RightBase)
    x: int = 0
