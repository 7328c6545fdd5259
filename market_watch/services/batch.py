"""Per-item results for continue-on-error batch operations."""
from dataclasses import dataclass, field


@dataclass
class ItemResult:
    """Result of processing a single batch item.

    Attributes:
        key: Item identifier (pattern id, level id or symbol)
        status: Processing status ("success" or "error")
        error_message: Error details if status is "error"
    """

    key: str
    status: str
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


@dataclass
class BatchResult:
    """Outcome of a batch that keeps going when individual items fail."""

    items: list[ItemResult] = field(default_factory=list)

    def record_success(self, key: str) -> None:
        self.items.append(ItemResult(key=key, status="success"))

    def record_failure(self, key: str, error: Exception) -> None:
        self.items.append(
            ItemResult(key=key, status="error", error_message=f"{type(error).__name__}: {error}")
        )

    @property
    def succeeded(self) -> list[str]:
        return [item.key for item in self.items if item.ok]

    @property
    def failed(self) -> list[ItemResult]:
        return [item for item in self.items if not item.ok]

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)
