from __future__ import annotations

"""Typed schema definitions for bot–bridge messages.

Purpose: Provide precise TypedDicts for the game bridge contract to aid static
checks and keep the protocol explicit. Every message is a JSON object with a
`type` field.

"""

from typing import Literal, Optional, TypedDict


MessageType = Literal[
    "create",
    "control",
    "look",
    "quit",
    "event",
    "entity",
]

EventName = Literal["login", "spawn", "death", "kicked", "end", "error"]

ControlName = Literal["forward", "sprint", "jump"]

EVENT_NAMES = ("login", "spawn", "death", "kicked", "end", "error")

CONTROL_NAMES = ("forward", "sprint", "jump")


class Vec3(TypedDict):
    x: float
    y: float
    z: float


# Client -> bridge


class Create(TypedDict):
    type: Literal["create"]
    host: str
    port: int
    username: str
    version: str
    auth: str


class Control(TypedDict):
    type: Literal["control"]
    control: ControlName
    state: bool


class Look(TypedDict):
    type: Literal["look"]
    yaw: float
    pitch: float
    force: bool


class Quit(TypedDict):
    type: Literal["quit"]


# Bridge -> client


class Event(TypedDict, total=False):
    type: Literal["event"]
    event: EventName
    reason: Optional[str]
    message: Optional[str]


class EntityUpdate(TypedDict, total=False):
    type: Literal["entity"]
    position: Optional[Vec3]
    onGround: bool


__all__ = [
    "MessageType",
    "EventName",
    "ControlName",
    "EVENT_NAMES",
    "CONTROL_NAMES",
    "Vec3",
    "Create",
    "Control",
    "Look",
    "Quit",
    "Event",
    "EntityUpdate",
]
