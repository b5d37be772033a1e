from typing import Protocol


class EmailSender(Protocol):
    async def send(self, email: str, code: str) -> None:
        ...
