"""Admin moderation: coach verification, users and feedback triage."""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from firebase_admin import auth as firebase_auth
from google.cloud import firestore

from models.database import (
    ADMINS,
    AGGREGATES,
    FEEDBACKS,
    NUTRITIONISTS,
    USERS,
    Database,
)
from schemas.enums import FeedbackStatus, UserType
from services.account_service import AccountService
from services.email_service import EmailService
from utils.errors import Forbidden, NotFound, ValidationFailed
from utils.helpers import full_name, utc_now
from utils.logger import setup_logger

logger = setup_logger(__name__)

REJECTED = "rejected"
RECENT_ACTIVITY_LIMIT = 5
FEEDBACK_LIMIT = 100

# Precedence when an id has documents in several collections
PROFILE_COLLECTIONS = (
    (ADMINS, UserType.ADMIN.value),
    (NUTRITIONISTS, UserType.PROFESSIONAL.value),
    (USERS, UserType.PERSONAL.value),
)

EDITABLE_USER_FIELDS = (
    "firstName",
    "lastName",
    "goal",
    "age",
    "gender",
    "height",
    "weight",
    "targetWeight",
    "activityLevel",
    "dietaryPreferences",
    "onboardingComplete",
    "specialization",
    "workplace",
    "shortBio",
    "yearsOfExperience",
)

_background_tasks: Set[asyncio.Task] = set()


def _created_sort_key(coach: Dict[str, Any]) -> float:
    created = coach.get("createdAt")
    if isinstance(created, datetime):
        return created.timestamp()
    return 0.0


async def count_query(query) -> int:
    results = await query.count().get()
    return int(results[0][0].value) if results and results[0] else 0


class AdminService:
    def __init__(
        self,
        database: Database,
        email_service: EmailService,
        accounts: Optional[AccountService] = None
    ):
        self.database = database
        self.email_service = email_service
        self.accounts = accounts or AccountService(database)

    # ------------------------------------------------------------------
    # Dashboard and coach verification
    # ------------------------------------------------------------------

    async def get_dashboard_summary(self) -> Dict[str, Any]:
        nutritionists = self.database.nutritionists()
        today = utc_now().strftime("%Y-%m-%d")

        total_subscribers = await count_query(self.database.users())
        total_coaches = await count_query(nutritionists.where("isVerified", "==", True))
        pending_coaches = await count_query(nutritionists.where("isVerified", "==", False))

        daily_snap = await self.database.collection(AGGREGATES).document("dailyStats").collection(
            "days"
        ).document(today).get()
        global_snap = await self.database.collection(AGGREGATES).document("globalCounts").get()

        recent_query = nutritionists.where("isVerified", "==", False).order_by(
            "createdAt", direction=firestore.Query.DESCENDING
        ).limit(RECENT_ACTIVITY_LIMIT)
        recent_activity = [
            {
                "id": snap.id,
                "text": f"New coach pending: {full_name(snap.to_dict(), '')}".strip(),
                "type": "pending",
            }
            async for snap in recent_query.stream()
        ]

        return {
            "totalSubscribers": total_subscribers,
            "totalCoaches": total_coaches,
            "pendingCoaches": pending_coaches,
            "mealsToday": (daily_snap.to_dict() or {}).get("mealsLogged", 0) if daily_snap.exists else 0,
            "plansCreated": (global_snap.to_dict() or {}).get("totalPlansCreated", 0) if global_snap.exists else 0,
            "recentActivity": recent_activity,
        }

    async def get_pending_coaches(self) -> List[Dict[str, Any]]:
        query = self.database.nutritionists().where("isVerified", "!=", True)
        coaches = []
        async for snap in query.stream():
            data = snap.to_dict() or {}
            if data.get("verificationStatus") == REJECTED:
                continue
            coaches.append({
                "id": snap.id,
                "firstName": data.get("firstName") or "",
                "lastName": data.get("lastName") or "",
                "email": data.get("email") or "",
                "createdAt": data.get("createdAt"),
                "profileImageUrl": data.get("profileImageUrl"),
                "professionalCertificateUrl": data.get("professionalCertificateUrl"),
            })
        coaches.sort(key=_created_sort_key, reverse=True)
        return coaches

    async def _set_verified_claim(self, coach_id: str, verified: bool):
        """Merge ``verifiedCoach`` into the coach's custom claims; failures are only logged."""
        try:
            record = await asyncio.to_thread(self.database.auth.get_user, coach_id)
            claims = dict(getattr(record, "custom_claims", None) or {})
            claims["verifiedCoach"] = verified
            await asyncio.to_thread(self.database.auth.set_custom_user_claims, coach_id, claims)
        except Exception as e:
            logger.error(f"Failed to set verifiedCoach claim for {coach_id}: {e}")

    async def verify_coach(self, admin_id: str, coach_id: str, verify: bool) -> str:
        coach_ref = self.database.nutritionist(coach_id)

        async def _verify(transaction):
            snap = await coach_ref.get(transaction=transaction)
            if not snap.exists:
                raise NotFound("Nutritionist not found.")
            if verify:
                transaction.update(coach_ref, {
                    "isVerified": True,
                    "verifiedAt": firestore.SERVER_TIMESTAMP,
                    "verifiedBy": admin_id,
                })
            else:
                transaction.update(coach_ref, {
                    "isVerified": False,
                    "verifiedAt": firestore.DELETE_FIELD,
                    "verifiedBy": firestore.DELETE_FIELD,
                })
            return snap.to_dict() or {}

        coach = await self.database.run_transaction(_verify)
        action = "verified" if verify else "unverified"
        logger.info(f"Admin {admin_id} {action} coach {coach_id}")

        await self._set_verified_claim(coach_id, verify)
        if verify and coach.get("email"):
            result = await self.email_service.send_coach_approval(coach["email"], full_name(coach, "Coach"))
            if not result.get("success"):
                logger.warning(f"Approval email to coach {coach_id} failed: {result.get('error')}")
        return f"Coach {action} successfully."

    async def reject_coach(self, admin_id: str, coach_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        """Mark a coach rejected and queue the hard delete.

        The soft delete commits first, so a crash before the purge leaves a
        ``pendingDeletion`` marker the scheduler picks up later.
        """
        coach_ref = self.database.nutritionist(coach_id)

        async def _reject(transaction):
            snap = await coach_ref.get(transaction=transaction)
            if not snap.exists:
                raise NotFound("Nutritionist not found.")
            transaction.update(coach_ref, {
                "verificationStatus": REJECTED,
                "pendingDeletion": True,
                "isVerified": False,
                "rejectedAt": firestore.SERVER_TIMESTAMP,
                "rejectedBy": admin_id,
                "rejectionReason": reason or None,
            })
            return snap.to_dict() or {}

        coach = await self.database.run_transaction(_reject)
        logger.info(f"Admin {admin_id} rejected coach {coach_id}")

        email_result = {"success": False, "error": "No email on file"}
        if coach.get("email"):
            email_result = await self.email_service.send_coach_rejection(
                coach["email"], full_name(coach, "Coach"), reason
            )

        self.schedule_purge(coach_id)
        return {"emailSent": bool(email_result.get("success"))}

    def schedule_purge(self, coach_id: str):
        task = asyncio.create_task(self.purge_rejected_coach(coach_id))
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)

    async def purge_rejected_coach(self, coach_id: str) -> bool:
        """Hard delete a rejected coach. Safe to call repeatedly."""
        try:
            await self.accounts.delete_account(coach_id, NUTRITIONISTS)
            return True
        except Exception as e:
            logger.error(f"Purge of rejected coach {coach_id} failed, will retry: {e}", exc_info=True)
            return False

    async def purge_pending_deletions(self) -> int:
        """Retry hard deletes whose soft delete committed earlier."""
        query = self.database.nutritionists().where("pendingDeletion", "==", True)
        coach_ids = [snap.id async for snap in query.stream()]
        purged = 0
        for coach_id in coach_ids:
            if await self.purge_rejected_coach(coach_id):
                purged += 1
        if coach_ids:
            logger.info(f"Purged {purged}/{len(coach_ids)} rejected coaches")
        return purged

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def _list_auth_users(self) -> List[Any]:
        def _collect():
            return list(self.database.auth.list_users().iterate_all())
        return await asyncio.to_thread(_collect)

    async def _get_auth_user(self, uid: str):
        try:
            return await asyncio.to_thread(self.database.auth.get_user, uid)
        except firebase_auth.UserNotFoundError:
            return None

    async def _merged_user(self, uid: str, record: Any) -> Optional[Dict[str, Any]]:
        """Profile document (by collection precedence) merged with the Auth record."""
        claims = getattr(record, "custom_claims", None) or {}
        metadata = getattr(record, "user_metadata", None)
        auth_created = getattr(metadata, "creation_timestamp", None)

        for collection, user_type in PROFILE_COLLECTIONS:
            snap = await self.database.collection(collection).document(uid).get()
            if not snap.exists:
                continue
            data = snap.to_dict() or {}
            merged = {
                "id": uid,
                "uid": uid,
                "firstName": data.get("firstName") or "",
                "lastName": data.get("lastName") or "",
                "email": getattr(record, "email", None) or data.get("email") or "",
                "userType": data.get("userType") or user_type,
                "createdAt": data.get("createdAt") or auth_created,
                "onboardingComplete": data.get("onboardingComplete") is True,
                "authDisabled": bool(getattr(record, "disabled", False)),
                "isAdmin": claims.get("admin") is True or collection == ADMINS,
            }
            if collection == NUTRITIONISTS:
                merged["isVerified"] = data.get("isVerified") is True
            return merged

        if record is None:
            return None
        logger.warning(f"Auth user {uid} has no profile document")
        return {
            "id": uid,
            "uid": uid,
            "firstName": "",
            "lastName": "",
            "email": getattr(record, "email", None) or "",
            "userType": "Unknown",
            "createdAt": auth_created,
            "onboardingComplete": False,
            "authDisabled": bool(getattr(record, "disabled", False)),
            "isAdmin": False,
        }

    async def list_users(self) -> List[Dict[str, Any]]:
        users = []
        for record in await self._list_auth_users():
            merged = await self._merged_user(record.uid, record)
            if merged is not None:
                users.append(merged)
        return users

    async def get_user(self, user_id: str) -> Dict[str, Any]:
        record = await self._get_auth_user(user_id)
        merged = await self._merged_user(user_id, record)
        if merged is None:
            raise NotFound("User not found.")
        return merged

    async def update_user(self, admin_id: str, user_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        payload = {k: v for k, v in updates.items() if k in EDITABLE_USER_FIELDS}
        if not payload:
            raise ValidationFailed([f"No editable fields provided. Allowed: {', '.join(EDITABLE_USER_FIELDS)}"])

        for collection, _ in PROFILE_COLLECTIONS:
            doc_ref = self.database.collection(collection).document(user_id)
            if (await doc_ref.get()).exists:
                await doc_ref.update({
                    **payload,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                    "lastUpdatedBy": admin_id,
                })
                logger.info(f"Admin {admin_id} updated {collection}/{user_id}: {sorted(payload)}")
                return await self.get_user(user_id)
        raise NotFound("User not found.")

    async def toggle_user_status(self, admin_id: str, user_id: str, disable: bool) -> str:
        if await self._get_auth_user(user_id) is None:
            raise NotFound("User not found in Firebase Authentication.")
        await asyncio.to_thread(self.database.auth.update_user, user_id, disabled=disable)

        payload = {
            "authDisabled": disable,
            "statusLastUpdatedBy": admin_id,
            "statusLastUpdatedAt": firestore.SERVER_TIMESTAMP,
        }
        batch = self.database.client.batch()
        touched = 0
        for collection, _ in PROFILE_COLLECTIONS:
            doc_ref = self.database.collection(collection).document(user_id)
            if (await doc_ref.get()).exists:
                batch.update(doc_ref, payload)
                touched += 1
        if touched:
            await batch.commit()
        else:
            logger.warning(f"User {user_id} has no profile document, only Auth status updated")

        action = "disabled" if disable else "enabled"
        logger.info(f"Admin {admin_id} {action} user {user_id}")
        return f"User account {action} successfully."

    async def delete_user(self, admin_id: str, user_id: str) -> str:
        if user_id == admin_id:
            raise Forbidden("Admins cannot delete their own account via API.")

        auth_deleted = False
        for collection, _ in PROFILE_COLLECTIONS:
            result = await self.accounts.delete_account(
                user_id, collection, delete_auth=not auth_deleted
            )
            auth_deleted = auth_deleted or result["authDeleted"]
        logger.info(f"Admin {admin_id} deleted user {user_id}")
        return f"User {user_id} deleted successfully."

    # ------------------------------------------------------------------
    # Feedback and coach details
    # ------------------------------------------------------------------

    async def list_feedbacks(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        query = self.database.collection(FEEDBACKS)
        if status and status != "All":
            query = query.where("status", "==", status)
        query = query.order_by("createdAt", direction=firestore.Query.DESCENDING).limit(FEEDBACK_LIMIT)

        feedbacks = []
        async for snap in query.stream():
            data = snap.to_dict() or {}
            feedbacks.append({
                "id": snap.id,
                "message": data.get("message") or "",
                "status": data.get("status") or "Unknown",
                "createdAt": data.get("createdAt"),
                "lastUpdatedAt": data.get("lastUpdatedAt"),
                "lastUpdatedBy": data.get("lastUpdatedBy"),
                "senderEmail": data.get("senderEmail") or "anonymous",
                "userId": data.get("userId"),
                "userType": data.get("userType") or "Unknown",
            })
        return feedbacks

    async def update_feedback_status(self, admin_id: str, feedback_id: str, status: FeedbackStatus):
        feedback_ref = self.database.collection(FEEDBACKS).document(feedback_id)
        if not (await feedback_ref.get()).exists:
            raise NotFound("Feedback not found.")
        await feedback_ref.update({
            "status": status.value,
            "lastUpdatedAt": firestore.SERVER_TIMESTAMP,
            "lastUpdatedBy": admin_id,
        })
        logger.info(f"Admin {admin_id} set feedback {feedback_id} to {status.value}")

    async def delete_feedback(self, admin_id: str, feedback_id: str):
        await self.database.collection(FEEDBACKS).document(feedback_id).delete()
        logger.info(f"Admin {admin_id} deleted feedback {feedback_id}")

    async def get_nutritionist(self, coach_id: str) -> Dict[str, Any]:
        snap = await self.database.nutritionist(coach_id).get()
        if not snap.exists:
            raise NotFound("Nutritionist not found.")
        return {"id": snap.id, **(snap.to_dict() or {})}
