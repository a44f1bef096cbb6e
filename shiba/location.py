from dataclasses import dataclass


@dataclass(frozen=True)
class Location:
    """Position of a token in a module, used in diagnostics."""
    module: str
    line: int
    column: int
    position: int

    def __str__(self) -> str:
        return f"{self.module}:{self.line}:{self.column}"
