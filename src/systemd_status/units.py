from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

UNIT_INFO_FIELDS = (
    "name",
    "description",
    "load_state",
    "active_state",
    "sub_state",
    "following_unit",
    "object_path",
    "job_queued",
    "job_type",
    "job_object_path",
)


@dataclass(frozen=True)
class UnitRecord:
    """One unit as reported by ``ListUnitsFiltered``.

    Field order matches the D-Bus ``(ssssssouso)`` reply row, see
    https://www.freedesktop.org/wiki/Software/systemd/dbus/
    """

    name: str
    description: str
    load_state: str
    active_state: str
    sub_state: str
    following_unit: str
    object_path: str
    job_queued: int
    job_type: str
    job_object_path: str

    @property
    def label(self) -> str:
        return self.name

    @classmethod
    def from_dbus(cls, row: Sequence[Any]) -> UnitRecord:
        if isinstance(row, (str, bytes)) or len(row) != len(UNIT_INFO_FIELDS):
            raise ValueError(
                f"unit row must have {len(UNIT_INFO_FIELDS)} fields, got {row!r}"
            )
        (
            name,
            description,
            load_state,
            active_state,
            sub_state,
            following_unit,
            object_path,
            job_queued,
            job_type,
            job_object_path,
        ) = row
        return cls(
            name=str(name),
            description=str(description),
            load_state=str(load_state),
            active_state=str(active_state),
            sub_state=str(sub_state),
            following_unit=str(following_unit),
            object_path=str(object_path),
            job_queued=int(job_queued),
            job_type=str(job_type),
            job_object_path=str(job_object_path),
        )
