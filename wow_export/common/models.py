"""Expense row and participant name models."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterator, List, Optional, Tuple

import pandas as pd

from wow_export.common.errors import DecodeError
from wow_export.constants.whooweswho import RowFields


def _to_decimal(value, field: str) -> Decimal:
    # Missing or null numbers decode to zero
    if value is None:
        return Decimal(0)
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise DecodeError(f"Field '{field}' is not a number: {value!r}")
    try:
        return Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except InvalidOperation as e:
        raise DecodeError(f"Field '{field}' is not a number: {value!r}") from e


def _to_int(value, field: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"Field '{field}' is not an integer: {value!r}")
    return value


@dataclass(frozen=True)
class Split:
    """Share of an expense attributed to one participant."""

    participant_id: int
    value: Decimal

    @classmethod
    def from_dict(cls, data: dict) -> "Split":
        if not isinstance(data, dict):
            raise DecodeError(f"Split entry is not an object: {data!r}")
        return cls(
            participant_id=_to_int(data.get(RowFields.SPLIT_ID), RowFields.SPLIT_ID),
            value=_to_decimal(data.get(RowFields.SPLIT_VALUE), RowFields.SPLIT_VALUE),
        )

    def describe(self, registry: "NameRegistry") -> str:
        return f"{{Person: {registry.name(self.participant_id):>5}, Value: {self.value:3.1f}}}"


@dataclass(frozen=True)
class ExpenseItem:
    """One row of a WhoOwesWho sheet."""

    description: str
    amount: Decimal
    payer_id: int
    splits: Optional[Tuple[Split, ...]]  # None when the row carries no split data
    timestamp: Optional[pd.Timestamp]

    @classmethod
    def from_dict(cls, data: dict) -> "ExpenseItem":
        """Decode one element of the Row endpoint's JSON array.

        Absent fields take zero values; fields of the wrong type raise DecodeError.
        """
        if not isinstance(data, dict):
            raise DecodeError(f"Row is not an object: {data!r}")

        description = data.get(RowFields.DESCRIPTION)
        if description is None:
            description = ""
        elif not isinstance(description, str):
            raise DecodeError(f"Field '{RowFields.DESCRIPTION}' is not a string: {description!r}")

        raw_splits = data.get(RowFields.SPLIT)
        if raw_splits is None:
            splits = None
        elif isinstance(raw_splits, list):
            splits = tuple(Split.from_dict(s) for s in raw_splits)
        else:
            raise DecodeError(f"Field '{RowFields.SPLIT}' is not an array: {raw_splits!r}")

        raw_time = data.get(RowFields.CTIME)
        timestamp = None
        if raw_time is not None:
            if not isinstance(raw_time, str):
                raise DecodeError(f"Field '{RowFields.CTIME}' is not a string: {raw_time!r}")
            try:
                timestamp = pd.Timestamp(raw_time)
            except ValueError as e:
                raise DecodeError(f"Field '{RowFields.CTIME}' is not a date-time: {raw_time!r}") from e

        return cls(
            description=description,
            amount=_to_decimal(data.get(RowFields.AMOUNT), RowFields.AMOUNT),
            payer_id=_to_int(data.get(RowFields.PAYER), RowFields.PAYER),
            splits=splits,
            timestamp=timestamp,
        )

    def split_values(self) -> Dict[int, Decimal]:
        """Split value per participant id; the last entry wins on duplicates."""
        return {s.participant_id: s.value for s in self.splits or ()}

    def participant_ids(self) -> Iterator[int]:
        """Payer first, then split recipients in order."""
        yield self.payer_id
        for s in self.splits or ():
            yield s.participant_id

    def describe(self, registry: "NameRegistry") -> str:
        """Debug line for verbose output, split recipients shown by name."""
        splits = "[" + " ".join(s.describe(registry) for s in self.splits or ()) + "]"
        return (
            f"{{Time: {self.timestamp}, Payer: {self.payer_id}, Amount: {self.amount:5.2f}, "
            f"Description: {self.description:>10}, Split: {splits}}}"
        )


class NameRegistry:
    """Participant id to display name, in column order.

    Ids keep the position of their first registration, so overrides come
    first and discovered ids follow in the order they were seen.
    """

    def __init__(self, names: Optional[Dict[int, str]] = None):
        self._names: Dict[int, str] = {}
        for participant_id, name in (names or {}).items():
            self.register(participant_id, name)

    def register(self, participant_id: int, name: str) -> None:
        self._names[participant_id] = name

    def ensure(self, participant_id: int) -> bool:
        """Register the id under its decimal form unless it already has a name.

        Returns True when the id was new.
        """
        if participant_id in self._names:
            return False
        self._names[participant_id] = str(participant_id)
        return True

    def name(self, participant_id: int) -> str:
        return self._names.get(participant_id, str(participant_id))

    def ids(self) -> List[int]:
        return list(self._names)

    def as_dict(self) -> Dict[int, str]:
        return dict(self._names)

    def __contains__(self, participant_id: int) -> bool:
        return participant_id in self._names

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"NameRegistry({self._names!r})"
