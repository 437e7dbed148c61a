"""Draft schemas"""

from pydantic import BaseModel


class ReminderToggle(BaseModel):
    enabled: bool
