from enum import StrEnum


class ExportColumns(StrEnum):
    """String enum for the fixed column names of a WhoOwesWho CSV export."""

    TIME = "Time"
    AMOUNT = "Amount"
    DESCRIPTION = "Description"
    PAYER = "Payer"


# Fixed prefix of every row, split columns follow
FIXED_COLUMNS = [
    ExportColumns.TIME,
    ExportColumns.AMOUNT,
    ExportColumns.DESCRIPTION,
    ExportColumns.PAYER,
]

SPLIT_COLUMN_PREFIX = "Split "
