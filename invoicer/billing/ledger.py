import logging
import math
import uuid
from typing import Iterable

from invoicer.errors import InvoiceValidationError
from invoicer.schemas.line_item import LineItem, LedgerOperation

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("description", "quantity", "rate")
PRICED_FIELDS = ("quantity", "rate")


def new_item_id() -> str:
    return f"item-{uuid.uuid4().hex[:12]}"


class Ledger:
    def __init__(self, items: Iterable[LineItem] | None = None):
        self._items: list[LineItem] = []
        for item in items or []:
            self._items.append(item.model_copy(update={"amount": item.quantity * item.rate}))

    @property
    def items(self) -> list[LineItem]:
        return [item.model_copy() for item in self._items]

    def __len__(self):
        return len(self._items)

    def _position(self, item_id: str) -> int | None:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        return None

    def insert(self) -> LineItem:
        item = LineItem(id=new_item_id(), description="", quantity=1, rate=0, amount=0)
        self._items.append(item)
        return item.model_copy()

    def update(self, item_id: str, field: str, value) -> LineItem | None:
        """Set one editable field; returns the updated item or None for an unknown id."""
        if field not in EDITABLE_FIELDS:
            raise InvoiceValidationError(f"Line item field '{field}' cannot be edited")

        index = self._position(item_id)
        if index is None:
            logger.debug(f"Ignoring update of unknown line item {item_id}")
            return None

        if field in PRICED_FIELDS:
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise InvoiceValidationError(f"Line item {field} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise InvoiceValidationError(f"Line item {field} must be a finite number")
            if value < 0:
                raise InvoiceValidationError(f"Line item {field} cannot be negative")
        else:
            value = "" if value is None else str(value)

        updated = self._items[index].model_copy(update={field: value})
        if field in PRICED_FIELDS:
            updated = updated.model_copy(update={"amount": updated.quantity * updated.rate})
            if not math.isfinite(updated.amount):
                raise InvoiceValidationError("Line item amount is out of range")
        self._items[index] = updated
        return updated.model_copy()

    def remove(self, item_id: str) -> None:
        # No minimum length: removing the last item leaves an empty ledger.
        self._items = [item for item in self._items if item.id != item_id]

    def reorder(self, item_id: str, new_index: int) -> None:
        index = self._position(item_id)
        if index is None:
            return
        item = self._items.pop(index)
        new_index = max(0, min(new_index, len(self._items)))
        self._items.insert(new_index, item)

    def apply(self, operation: LedgerOperation) -> None:
        if operation.op == "insert":
            self.insert()
        elif operation.op == "update":
            self.update(operation.id, operation.field, operation.value)
        elif operation.op == "remove":
            self.remove(operation.id)
        elif operation.op == "reorder":
            if operation.index is None:
                raise InvoiceValidationError("Reorder needs a target index")
            self.reorder(operation.id, operation.index)
        else:
            raise InvoiceValidationError(f"Unknown ledger operation '{operation.op}'")
