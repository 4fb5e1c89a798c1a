"""Complete removal of user and coach accounts."""

import asyncio
from typing import Any, Dict, List, Tuple

from firebase_admin import auth as firebase_auth
from google.cloud import firestore

from models.database import ADMINS, NUTRITIONISTS, USERS, Database
from schemas.enums import OPEN_REQUEST_STATUSES, RequestStatus
from utils.logger import setup_logger

logger = setup_logger(__name__)

COACH_REQUESTS = "coachRequests"

# Collection -> (subcollections, storage prefixes)
ACCOUNT_LAYOUT: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    USERS: (
        (
            "reminders",
            "coachRequests",
            "blockedCoaches",
            "savedRecipes",
            "dailyConsumption",
            "weightHistory",
            "nutritional_program",
            "userNotifications",
        ),
        ("user_profile_images/{uid}",),
    ),
    NUTRITIONISTS: (
        ("reminders", "clientNotes", "ratings", "coachNotifications"),
        ("coach_profile_images/{uid}", "coach_certificates/{uid}"),
    ),
    ADMINS: ((), ()),
}


class AccountService:
    """Deletes every piece of an account; each step tolerates missing data.

    Running a deletion twice is safe, which lets interrupted purges be retried.
    """

    def __init__(self, database: Database):
        self.database = database

    async def delete_subcollection(self, doc_ref, name: str) -> int:
        deleted = 0
        async for snap in doc_ref.collection(name).stream():
            await snap.reference.delete()
            deleted += 1
        return deleted

    async def delete_storage_prefix(self, prefix: str) -> int:
        if self.database.bucket is None:
            logger.warning(f"No storage bucket configured, skipping {prefix}")
            return 0

        def _delete() -> int:
            count = 0
            for blob in self.database.bucket.list_blobs(prefix=prefix):
                blob.delete()
                count += 1
            return count

        return await asyncio.to_thread(_delete)

    async def delete_auth_user(self, uid: str) -> bool:
        """False when the Auth user was already gone."""
        try:
            await asyncio.to_thread(self.database.auth.delete_user, uid)
            return True
        except firebase_auth.UserNotFoundError:
            logger.info(f"Auth user {uid} already deleted")
            return False

    async def _detach_relationships(self, collection: str, uid: str, data: Dict[str, Any]):
        """Keep coach client lists and request states consistent with the deleted account."""
        if collection == USERS and data.get("activeCoachId"):
            coach_ref = self.database.nutritionist(data["activeCoachId"])
            if (await coach_ref.get()).exists:
                await coach_ref.update({"clientIds": firestore.ArrayRemove([uid])})
        elif collection == NUTRITIONISTS:
            await self._close_coach_requests(uid, data.get("clientIds") or [])

    async def _close_coach_requests(self, coach_id: str, client_ids: List[str]):
        """End active relationships and decline open invitations of a deleted coach."""
        batch = self.database.client.batch()
        clients = set(client_ids)
        closed = 0

        query = self.database.client.collection_group(COACH_REQUESTS).where(
            "nutritionistId", "==", coach_id
        ).where("status", "in", OPEN_REQUEST_STATUSES)
        async for snap in query.stream():
            if (snap.to_dict() or {}).get("status") == RequestStatus.SELECTED.value:
                batch.update(snap.reference, {
                    "status": RequestStatus.ENDED_BY_COACH.value,
                    "endedTimestamp": firestore.SERVER_TIMESTAMP,
                })
                clients.add(snap.reference.parent.parent.id)
            else:
                batch.update(snap.reference, {
                    "status": RequestStatus.DECLINED.value,
                    "declinedTimestamp": firestore.SERVER_TIMESTAMP,
                })
            closed += 1

        detached = 0
        for client_id in sorted(clients):
            client_ref = self.database.user(client_id)
            client_snap = await client_ref.get()
            if client_snap.exists and (client_snap.to_dict() or {}).get("activeCoachId") == coach_id:
                batch.update(client_ref, {"activeCoachId": firestore.DELETE_FIELD})
                detached += 1

        if closed or detached:
            await batch.commit()
        logger.info(f"Closed {closed} requests and detached {detached} clients of coach {coach_id}")

    async def delete_account(self, uid: str, collection: str, delete_auth: bool = True) -> Dict[str, Any]:
        """Delete subcollections, the profile document, Storage files and the Auth user."""
        subcollections, prefixes = ACCOUNT_LAYOUT[collection]
        doc_ref = self.database.collection(collection).document(uid)

        snap = await doc_ref.get()
        if snap.exists:
            await self._detach_relationships(collection, uid, snap.to_dict() or {})

        removed_docs = 0
        for name in subcollections:
            removed_docs += await self.delete_subcollection(doc_ref, name)
        await doc_ref.delete()

        removed_files = 0
        for prefix in prefixes:
            removed_files += await self.delete_storage_prefix(prefix.format(uid=uid))

        auth_deleted = await self.delete_auth_user(uid) if delete_auth else False
        logger.info(
            f"Deleted {collection} account {uid}: {removed_docs} subcollection docs, "
            f"{removed_files} files, auth deleted: {auth_deleted}"
        )
        return {"documents": removed_docs, "files": removed_files, "authDeleted": auth_deleted}
