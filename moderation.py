"""
Status transitions for vendors and goods.

Each builder returns the single ``$set``/``$unset`` update that moves a document
to its target status, so a transition is applied in one atomic write.
"""

from typing import Any, Dict, Optional

from database import now_utc
from errors import BadInputError

VENDOR_TRANSITIONS = {
    "pending": {"verified", "rejected"},
    "verified": {"suspended"},
    "rejected": {"verified"},
    "suspended": {"verified"},
}

GOODS_TRANSITIONS = {
    "pending": {"approved", "flagged", "dropped"},
    "approved": {"flagged", "dropped"},
    "flagged": {"approved", "dropped"},
    "dropped": set(),
}


def check_transition(table: Dict[str, set], current: str, target: str, label: str) -> None:
    if target not in table.get(current, set()):
        raise BadInputError(f"Cannot move {label} from {current} to {target}")


def vendor_status_update(status: str, admin_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
    stamp = now_utc()
    to_set: Dict[str, Any] = {"status": status, "updated_at": stamp}
    to_unset: Dict[str, str] = {}

    if status == "verified":
        to_set.update(verified_at=stamp, verified_by=admin_id)
        to_unset["rejection_reason"] = ""
    elif status in ("rejected", "suspended"):
        to_set["rejection_reason"] = reason
        to_unset.update(verified_at="", verified_by="")
    else:
        to_unset.update(verified_at="", verified_by="", rejection_reason="")

    update: Dict[str, Any] = {"$set": to_set}
    if to_unset:
        update["$unset"] = to_unset
    return update


def goods_status_update(status: str, admin_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
    stamp = now_utc()
    to_set: Dict[str, Any] = {"status": status, "updated_at": stamp}
    update: Dict[str, Any] = {"$set": to_set}

    if status == "approved":
        to_set.update(approved_at=stamp, approved_by=admin_id)
        update["$unset"] = {"flag_reason": "", "flagged_by": "", "flagged_at": ""}
    elif status in ("flagged", "dropped"):
        to_set.update(flag_reason=reason, flagged_by=admin_id, flagged_at=stamp)
        if status == "dropped":
            to_set["is_available"] = False
    return update
