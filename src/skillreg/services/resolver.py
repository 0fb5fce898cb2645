# src/skillreg/services/resolver.py
from __future__ import annotations
import logging
from typing import Optional

from skillreg.domain import PackageId, PackageRef, PackageVersion, VersionConstraint, parse_constraint
from skillreg.domain.errors import NoMatchingVersionError
from skillreg.ports import EventBus, PackageStore
from skillreg.services.eventbus import emit

_log = logging.getLogger("skillreg.resolver")


class Resolver:
    """Maps an identifier plus a range to exactly one published version.

    Pure with respect to the store: the same store contents and the same
    constraint always give the same answer.
    """

    def __init__(self, store: PackageStore, *, bus: Optional[EventBus] = None):
        self.store = store
        self.bus = bus

    def resolve(self, pkg_id: PackageId, constraint: VersionConstraint | str | None = None) -> PackageVersion:
        # разбор диапазона до любого обращения к хранилищу
        c = parse_constraint(constraint)
        versions = self.store.list_versions(pkg_id)

        chosen: Optional[PackageVersion] = None
        for pv in versions:
            if c.matches(pv.version) and (chosen is None or chosen.version < pv.version):
                chosen = pv
        if chosen is None:
            available = [str(pv.version) for pv in versions]
            _log.info("resolve.no_match", extra={"extra": {"package": str(pkg_id), "constraint": str(c), "available": available}})
            raise NoMatchingVersionError(str(pkg_id), str(c), available)

        emit(self.bus, "package.resolved", {"package": str(pkg_id), "constraint": str(c), "version": str(chosen.version)}, "pkg.resolver")
        return chosen

    def resolve_ref(self, ref: PackageRef | str) -> PackageVersion:
        r = ref if isinstance(ref, PackageRef) else PackageRef.parse(ref)
        return self.resolve(r.id, r.constraint)
