from __future__ import annotations

from typing import Optional, Protocol


class FormFieldGateway(Protocol):
    """Interface for the host form fields the editor writes into."""

    def write(self, selector: str, value: str) -> None:
        ...

    def read(self, selector: str) -> Optional[str]:
        ...

    def dispatch_change(self, selector: str) -> None:
        ...
