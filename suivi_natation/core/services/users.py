"""
Users, profiles, groups and the athlete directory.

User administration (creating coaches, changing roles, disabling accounts)
goes through the admin-user server-side function.
"""

import logging
from typing import Any, Optional

from ..training.models import AthleteSummary, GroupSummary, UpcomingBirthday, UserProfile, UserSummary
from ..training.scales import safe_int, safe_optional_int
from ...infrastructure.functions.client import require_functions
from ...infrastructure.mappers import (
    present,
    upcoming_birthday_from_row,
    user_profile_from_row,
    user_profile_to_row,
    user_summary_from_row,
)
from ...infrastructure.store.base import Query
from .base import Service

logger = logging.getLogger(__name__)

ADMIN_FUNCTION = "admin-user"
ROLES = ("athlete", "coach", "comite", "admin")


def _sort_key(athlete: AthleteSummary) -> str:
    return athlete.display_name.casefold()


class UserService(Service):

    def get_profile(
        self,
        user_id: Optional[int] = None,
        display_name: Optional[str] = None,
    ) -> Optional[UserProfile]:
        if user_id:
            query = Query().eq("user_id", user_id)
        elif display_name:
            query = Query().eq("display_name", display_name)
        else:
            return None
        rows = self._store().select("user_profiles", query.page(1))
        return user_profile_from_row(rows[0]) if rows else None

    def update_profile(self, profile: UserProfile) -> UserProfile:
        """
        Create or replace a user's profile.

        Setting a federation IUF removes manual club record swimmers that
        carry the same IUF, so the athlete is not listed twice.
        """
        store = self._store()
        iuf = (profile.ffn_iuf or "").strip() or None
        profile.ffn_iuf = iuf
        if iuf:
            removed = store.delete(
                "club_record_swimmers",
                Query().eq("iuf", iuf).eq("source_type", "manual"),
            )
            if removed:
                logger.info(
                    "Removed manual swimmer duplicates",
                    extra={"user_id": profile.user_id, "count": removed}
                )
        store.upsert("user_profiles", [user_profile_to_row(profile)], on_conflict=("user_id",))
        return profile

    def get_groups(self) -> list[GroupSummary]:
        groups = []
        for row in self._store().select("groups", Query().order_by("name")):
            group_id = safe_int(row.get("id"), 0)
            name = str(row.get("name") or f"Groupe {group_id}").strip()
            if group_id > 0 and name:
                groups.append(GroupSummary(id=group_id, name=name))
        return groups

    def get_athletes(self) -> list[AthleteSummary]:
        """
        Athlete directory sorted by name.

        With groups: their athlete members and group labels. Without groups:
        active athlete users. Without any user: athletes seen in sessions,
        strength runs and assignments.
        """
        store = self._store()
        users = store.select("users")
        if not users:
            return self._athletes_from_activity()

        iuf_by_user = {row.get("user_id"): row.get("ffn_iuf") for row in store.select("user_profiles")}
        groups = {group.id: group.name for group in self.get_groups()}
        athletes_by_id = {
            row["id"]: row for row in users
            if row.get("role") == "athlete" and row.get("is_active") is not False
        }

        if groups:
            directory: dict[int, AthleteSummary] = {}
            for member in store.select("group_members"):
                user = athletes_by_id.get(member.get("user_id"))
                if user is None or user["id"] in directory:
                    continue
                directory[user["id"]] = AthleteSummary(
                    id=user["id"],
                    display_name=user.get("display_name") or "",
                    email=user.get("email"),
                    group_id=member.get("group_id"),
                    group_label=groups.get(member.get("group_id")),
                    ffn_iuf=iuf_by_user.get(user["id"]),
                )
            athletes = list(directory.values())
        else:
            athletes = [
                AthleteSummary(
                    id=user["id"],
                    display_name=user.get("display_name") or "",
                    email=user.get("email"),
                    ffn_iuf=iuf_by_user.get(user["id"]),
                )
                for user in athletes_by_id.values()
            ]
        return sorted((athlete for athlete in athletes if athlete.display_name), key=_sort_key)

    def _athletes_from_activity(self) -> list[AthleteSummary]:
        store = self._store()
        athletes: dict[str, AthleteSummary] = {}

        def add(name: Any, athlete_id: Any) -> None:
            display_name = str(name or "").strip()
            if not display_name:
                return
            parsed_id = safe_optional_int(athlete_id)
            key = f"id:{parsed_id}" if parsed_id is not None else f"name:{display_name.lower()}"
            athletes.setdefault(key, AthleteSummary(id=parsed_id, display_name=display_name))

        for row in store.select("sessions"):
            add(row.get("athlete_name"), row.get("athlete_id"))
        for row in store.select("strength_session_runs"):
            add(row.get("athlete_name"), row.get("athlete_id"))
        for row in store.select("session_assignments"):
            add(row.get("target_athlete"), row.get("target_user_id"))
        return sorted(athletes.values(), key=_sort_key)

    def get_upcoming_birthdays(self, days: int = 30) -> list[UpcomingBirthday]:
        rows = self._store().call("get_upcoming_birthdays", {"p_days": days})
        return present(upcoming_birthday_from_row(row) for row in rows)

    def list_users(self, role: Optional[str] = None, include_inactive: bool = False) -> list[UserSummary]:
        query = Query().order_by("display_name")
        if role:
            query.eq("role", role)
        if not include_inactive:
            query.eq("is_active", True)
        return present(user_summary_from_row(row) for row in self._store().select("users", query))

    # -- Administration (server-side function) -----------------------------

    def create_coach(
        self,
        display_name: str,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> dict[str, Any]:
        functions = require_functions(self._functions, "create_coach")
        data = functions.invoke(ADMIN_FUNCTION, {
            "action": "create_coach",
            "display_name": display_name,
            "email": email,
            "password": password,
        }) or {}
        logger.info("Coach created", extra={"display_name": display_name})
        return {
            "status": "created",
            "user": data.get("user"),
            "initial_password": data.get("initial_password"),
        }

    def update_user_role(self, user_id: int, role: str) -> None:
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")
        functions = require_functions(self._functions, "update_user_role")
        functions.invoke(ADMIN_FUNCTION, {"action": "update_role", "user_id": user_id, "role": role})

    def disable_user(self, user_id: int) -> None:
        functions = require_functions(self._functions, "disable_user")
        functions.invoke(ADMIN_FUNCTION, {"action": "disable_user", "user_id": user_id})
