from enum import Enum


class DeliverableType(str, Enum):
    TEXT = "text"
    JSON = "json"
    CODE = "code"
