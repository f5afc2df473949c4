"""
Group Service

Groups of teams. Teams point at their group through teams.group_id;
group_staff gives guardians a role in a group.
"""

from typing import List, Dict, Any

from loguru import logger

from database.supabase_client import get_supabase_client

GROUP_FIELDS = ("name", "description", "avatar_image")


def group_view(row: Dict[str, Any]) -> Dict[str, Any]:
    """groups row → group view-model"""
    return {
        "id": str(row["id"]),
        "name": row.get("name") or "",
        "description": row.get("description"),
        "avatar_image": row.get("avatar_image"),
    }


class GroupService:
    """Group service"""

    @property
    def supabase(self):
        return get_supabase_client()

    # =============================================
    # Groups
    # =============================================

    async def list_groups(self) -> List[Dict[str, Any]]:
        """Groups by name; empty when the backend fails"""
        try:
            rows = self.supabase.table("groups").select("*").order("name").execute().data or []
        except Exception as e:
            logger.warning(f"Failed to list groups: {e}")
            return []
        return [group_view(r) for r in rows]

    async def get_group(self, group_id: str) -> Dict[str, Any]:
        """Group with its teams and staff (LookupError when missing)"""
        response = self.supabase.table("groups").select("*").eq(
            "id", group_id
        ).maybe_single().execute()
        row = response.data if response else None
        if not row:
            raise LookupError("Group not found")

        teams = self.supabase.table("teams").select(
            "id, name, age_group"
        ).eq("group_id", group_id).order("name").execute().data or []

        return {
            **group_view(row),
            "teams": [
                {"id": str(t["id"]), "name": t.get("name") or "", "age_group": t.get("age_group")}
                for t in teams
            ],
            "staff": await self.list_staff(group_id),
        }

    async def create_group(self, data: Dict[str, Any]) -> Dict[str, Any]:
        row = {k: data.get(k) for k in GROUP_FIELDS}
        response = self.supabase.table("groups").insert(row).execute()
        if not response.data:
            raise RuntimeError("Group insert returned no row")

        created = response.data[0]
        logger.info(f"Group created: {created['name']} ({created['id']})")
        return group_view(created)

    async def update_group(self, group_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Update the given fields only"""
        changes = {k: v for k, v in changes.items() if k in GROUP_FIELDS}
        if not changes:
            return await self.get_group(group_id)

        response = self.supabase.table("groups").update(changes).eq("id", group_id).execute()
        if not response.data:
            raise LookupError("Group not found")
        return group_view(response.data[0])

    async def delete_group(self, group_id: str) -> bool:
        """Delete a group; its teams are released, not deleted"""
        self.supabase.table("teams").update({"group_id": None}).eq("group_id", group_id).execute()
        self.supabase.table("group_staff").delete().eq("group_id", group_id).execute()
        self.supabase.table("groups").delete().eq("id", group_id).execute()
        logger.info(f"Group deleted: {group_id}")
        return True

    # =============================================
    # Staff
    # =============================================

    async def list_staff(self, group_id: str) -> List[Dict[str, Any]]:
        rows = self.supabase.table("group_staff").select("*").eq(
            "group_id", group_id
        ).execute().data or []

        guardian_ids = [r["guardian_id"] for r in rows if r.get("guardian_id")]
        guardians: Dict[str, Dict[str, Any]] = {}
        if guardian_ids:
            for g in self.supabase.table("guardians").select(
                "id, first_name, last_name, email"
            ).in_("id", guardian_ids).execute().data or []:
                guardians[str(g["id"])] = g

        staff = []
        for r in rows:
            g = guardians.get(str(r["guardian_id"]), {})
            staff.append({
                "guardian_id": str(r["guardian_id"]),
                "name": f"{g.get('first_name') or ''} {g.get('last_name') or ''}".strip(),
                "email": g.get("email"),
                "role": r.get("role") or "",
            })
        return staff

    async def add_staff(self, group_id: str, guardian_id: str, role: str) -> Dict[str, Any]:
        """Give a guardian a role in the group (ValueError when already staff)"""
        existing = self.supabase.table("group_staff").select("id").eq(
            "group_id", group_id
        ).eq("guardian_id", guardian_id).execute()
        if existing.data:
            raise ValueError("Guardian is already staff of this group")

        response = self.supabase.table("group_staff").insert({
            "group_id": group_id,
            "guardian_id": guardian_id,
            "role": role,
        }).execute()
        if not response.data:
            raise RuntimeError("Group staff insert returned no row")

        logger.info(f"{role} {guardian_id} added to group {group_id}")
        staff = await self.list_staff(group_id)
        return next(s for s in staff if s["guardian_id"] == str(guardian_id))

    async def remove_staff(self, group_id: str, guardian_id: str) -> bool:
        self.supabase.table("group_staff").delete().eq(
            "group_id", group_id
        ).eq("guardian_id", guardian_id).execute()
        logger.info(f"Guardian {guardian_id} removed from group {group_id}")
        return True


group_service = GroupService()
