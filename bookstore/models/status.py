import enum


class RecordStatus(str, enum.Enum):
    """Visibility state of a soft-deletable record."""

    ACTIVE = "active"
    DELETED = "deleted"
