"""Hardware notification wire model.

A notification is a JSON datagram::

    {"type": "door_closed", "vals": [{"k": "locker", "v": "7"}, {"k": "offset", "v": "[2:4]"}]}
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class KeyValue(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key: str = Field(alias="k")
    value: str = Field(alias="v")


class Notification(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    type: str = ""
    values: list[KeyValue] = Field(default_factory=list, alias="vals")

    def get(self, key: str) -> str | None:
        """Value of the first entry named *key*."""
        for item in self.values:
            if item.key == key:
                return item.value
        return None
