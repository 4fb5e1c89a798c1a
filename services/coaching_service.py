"""Coach and client relationship lifecycle.

Each user to coach relationship is tracked by one document in
``users/{uid}/coachRequests``. Its status moves

    pending -> accepted | declined
    accepted -> selected -> ended_by_user | ended_by_coach | blocked_by_user
    selected | ended_* -> rated

and a terminal request never comes back to life; a new request document is
created instead. ``users/{uid}.activeCoachId`` and
``nutritionists/{coach}.clientIds`` mirror the single ``selected`` request and
are only ever written together inside one transaction.
"""

from typing import Any, Dict, List, Optional

from google.cloud import firestore

from models.database import CHATS, Database
from schemas.enums import (
    OPEN_REQUEST_STATUSES,
    RATEABLE_REQUEST_STATUSES,
    RequestStatus,
)
from services.notification_service import NotificationService
from utils.errors import Conflict, Forbidden, NotFound, ValidationFailed
from utils.helpers import (
    coach_public_details,
    full_name,
    round_half_up,
    user_public_details,
)
from utils.logger import setup_logger

logger = setup_logger(__name__)

COACH_REQUESTS = "coachRequests"
BLOCKED_COACHES = "blockedCoaches"
RATINGS = "ratings"
CLIENT_NOTES = "clientNotes"

CLIENT_DETAIL_FIELDS = (
    "email",
    "age",
    "gender",
    "height",
    "weight",
    "startWeight",
    "targetWeight",
    "activityLevel",
    "dietaryPreferences",
    "transformationGoals",
    "nutritionPlan",
    "currentStreak",
    "longestStreak",
    "lastStreakDayLogged",
)


def _data(snap) -> Dict[str, Any]:
    return (snap.to_dict() or {}) if snap.exists else {}


class CoachingService:
    """User and coach operations on coaching relationships."""

    def __init__(self, database: Database, notifier: NotificationService):
        self.database = database
        self.notifier = notifier

    def requests_of(self, user_id: str):
        return self.database.user(user_id).collection(COACH_REQUESTS)

    async def get_coach_details(self, coach_id: str) -> Optional[Dict[str, Any]]:
        snap = await self.database.nutritionist(coach_id).get()
        return coach_public_details(coach_id, snap.to_dict()) if snap.exists else None

    async def get_user_details(self, user_id: str) -> Optional[Dict[str, Any]]:
        snap = await self.database.user(user_id).get()
        return user_public_details(user_id, snap.to_dict()) if snap.exists else None

    async def _coach_details_map(self, coach_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        details = {}
        for coach_id in dict.fromkeys(coach_ids):
            found = await self.get_coach_details(coach_id)
            if found is not None:
                details[coach_id] = found
        return details

    # ------------------------------------------------------------------
    # User side
    # ------------------------------------------------------------------

    async def get_status(self, user_id: str) -> Dict[str, Any]:
        """Active coach, or the pending and accepted requests."""
        user = _data(await self.database.user(user_id).get())
        active_coach_id = user.get("activeCoachId")

        if active_coach_id:
            details = await self.get_coach_details(active_coach_id)
            if details is not None:
                return {
                    "activeCoachId": active_coach_id,
                    "activeCoachDetails": details,
                    "pendingRequests": [],
                    "acceptedRequests": [],
                }
            logger.warning(
                f"Active coach {active_coach_id} of user {user_id} has no document; "
                f"treating user as having no coach"
            )

        query = self.requests_of(user_id).where(
            "status", "in", [RequestStatus.PENDING.value, RequestStatus.ACCEPTED.value]
        )
        requests = []
        async for snap in query.stream():
            request = {"id": snap.id, **(snap.to_dict() or {})}
            if not request.get("nutritionistId"):
                logger.warning(f"Coach request {snap.id} of user {user_id} has no nutritionistId")
                continue
            requests.append(request)

        details = await self._coach_details_map([r["nutritionistId"] for r in requests])
        pending, accepted = [], []
        for request in requests:
            coach = details.get(request["nutritionistId"])
            if coach is None:
                continue
            request["details"] = coach
            if request["status"] == RequestStatus.PENDING.value:
                pending.append(request)
            else:
                accepted.append(request)

        return {"activeCoachId": None, "pendingRequests": pending, "acceptedRequests": accepted}

    async def send_request(self, user_id: str, coach_id: str) -> str:
        """Create a pending request to a coach.

        The duplicate check and the insert share one transaction, and the user
        document is written in it too, so two concurrent calls contend on the
        same document and the retried one sees the first request.
        """
        user_ref = self.database.user(user_id)
        coach_ref = self.database.nutritionist(coach_id)
        requests = self.requests_of(user_id)
        new_request_ref = requests.document()

        async def _create(transaction):
            user = _data(await user_ref.get(transaction=transaction))
            if user.get("activeCoachId"):
                raise Conflict("You already have an active coach. End the current relationship first.")

            open_requests = requests.where("nutritionistId", "==", coach_id).where(
                "status", "in", OPEN_REQUEST_STATUSES
            ).limit(1)
            async for existing in open_requests.stream(transaction=transaction):
                status = (existing.to_dict() or {}).get("status")
                raise Conflict(f"A {status} request to this coach already exists.")

            coach_snap = await coach_ref.get(transaction=transaction)
            if not coach_snap.exists:
                raise NotFound("Nutritionist not found.")

            transaction.set(new_request_ref, {
                "nutritionistId": coach_id,
                "status": RequestStatus.PENDING.value,
                "requestTimestamp": firestore.SERVER_TIMESTAMP,
            })
            transaction.set(user_ref, {"lastCoachRequestAt": firestore.SERVER_TIMESTAMP}, merge=True)
            return user

        user = await self.database.run_transaction(_create)
        logger.info(f"User {user_id} sent coach request {new_request_ref.id} to {coach_id}")

        await self.notifier.invitation_received(coach_id, user_id, full_name(user, "A user"))
        return new_request_ref.id

    async def get_request_status(self, user_id: str, coach_id: str) -> str:
        query = self.requests_of(user_id).where("nutritionistId", "==", coach_id).where(
            "status", "in", OPEN_REQUEST_STATUSES
        ).limit(1)
        async for snap in query.stream():
            return (snap.to_dict() or {}).get("status", "none")
        return "none"

    async def select_coach(self, user_id: str, request_id: str, coach_id: str):
        """Turn an accepted request into the user's active relationship."""
        user_ref = self.database.user(user_id)
        coach_ref = self.database.nutritionist(coach_id)
        request_ref = self.requests_of(user_id).document(request_id)

        async def _select(transaction):
            request_snap = await request_ref.get(transaction=transaction)
            coach_snap = await coach_ref.get(transaction=transaction)
            user = _data(await user_ref.get(transaction=transaction))

            if not request_snap.exists:
                raise NotFound("Coach request not found.")
            if not coach_snap.exists:
                raise NotFound("Nutritionist not found.")
            request = request_snap.to_dict() or {}
            if request.get("nutritionistId") != coach_id:
                raise Forbidden("This request was not made to this nutritionist.")
            if user.get("activeCoachId"):
                raise Conflict("You already have an active coach.")
            if request.get("status") != RequestStatus.ACCEPTED.value:
                raise Conflict(
                    f"Request status is '{request.get('status')}', only accepted requests can be selected."
                )

            transaction.set(user_ref, {"activeCoachId": coach_id}, merge=True)
            transaction.update(request_ref, {
                "status": RequestStatus.SELECTED.value,
                "selectedTimestamp": firestore.SERVER_TIMESTAMP,
            })
            transaction.update(coach_ref, {"clientIds": firestore.ArrayUnion([user_id])})
            return user

        user = await self.database.run_transaction(_select)
        logger.info(f"User {user_id} selected coach {coach_id} via request {request_id}")

        await self.notifier.coach_selected(coach_id, user_id, full_name(user, "A user"))

    async def _read_relationship(self, transaction, user_id: str, coach_id: str):
        """Transaction reads needed before ending a relationship."""
        coach_snap = await self.database.nutritionist(coach_id).get(transaction=transaction)
        selected_query = self.requests_of(user_id).where("nutritionistId", "==", coach_id).where(
            "status", "==", RequestStatus.SELECTED.value
        )
        selected = [snap async for snap in selected_query.stream(transaction=transaction)]
        return coach_snap.exists, selected

    def _write_end(self, transaction, user_id: str, coach_id: str, coach_exists: bool, selected, status: str):
        transaction.update(self.database.user(user_id), {"activeCoachId": firestore.DELETE_FIELD})
        for snap in selected:
            transaction.update(snap.reference, {
                "status": status,
                "endedTimestamp": firestore.SERVER_TIMESTAMP,
            })
        if coach_exists:
            transaction.update(
                self.database.nutritionist(coach_id),
                {"clientIds": firestore.ArrayRemove([user_id])}
            )

    async def end_relationship(self, user_id: str) -> Optional[str]:
        """End the user's active relationship. Returns the former coach id."""
        user_ref = self.database.user(user_id)

        async def _end(transaction):
            user = _data(await user_ref.get(transaction=transaction))
            coach_id = user.get("activeCoachId")
            if not coach_id:
                return None
            coach_exists, selected = await self._read_relationship(transaction, user_id, coach_id)
            self._write_end(
                transaction, user_id, coach_id, coach_exists, selected,
                RequestStatus.ENDED_BY_USER.value
            )
            return coach_id

        coach_id = await self.database.run_transaction(_end)
        if coach_id:
            logger.info(f"User {user_id} ended relationship with coach {coach_id}")
        return coach_id

    async def block_coach(self, user_id: str, coach_id: str) -> bool:
        """Block a coach, ending the relationship when it is the active one."""
        user_ref = self.database.user(user_id)
        block_ref = user_ref.collection(BLOCKED_COACHES).document(coach_id)

        async def _block(transaction):
            user = _data(await user_ref.get(transaction=transaction))
            is_active = user.get("activeCoachId") == coach_id
            if is_active:
                coach_exists, selected = await self._read_relationship(transaction, user_id, coach_id)
                self._write_end(
                    transaction, user_id, coach_id, coach_exists, selected,
                    RequestStatus.BLOCKED_BY_USER.value
                )
            transaction.set(block_ref, {"blockedAt": firestore.SERVER_TIMESTAMP})
            return is_active

        ended = await self.database.run_transaction(_block)
        logger.info(f"User {user_id} blocked coach {coach_id} (relationship ended: {ended})")
        return ended

    async def unblock_coach(self, user_id: str, coach_id: str):
        await self.database.user(user_id).collection(BLOCKED_COACHES).document(coach_id).delete()
        logger.info(f"User {user_id} unblocked coach {coach_id}")

    async def rate_coach(self, user_id: str, coach_id: str, rating: Any) -> Dict[str, Any]:
        """Record or replace the user's rating and refresh the coach average."""
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationFailed(["Rating must be an integer between 1 and 5."])

        coach_ref = self.database.nutritionist(coach_id)
        rating_ref = coach_ref.collection(RATINGS).document(user_id)
        rateable_query = self.requests_of(user_id).where("nutritionistId", "==", coach_id).where(
            "status", "in", RATEABLE_REQUEST_STATUSES
        )

        async def _rate(transaction):
            coach_snap = await coach_ref.get(transaction=transaction)
            if not coach_snap.exists:
                raise NotFound("Nutritionist not found.")
            previous_snap = await rating_ref.get(transaction=transaction)
            rateable = [snap async for snap in rateable_query.stream(transaction=transaction)]

            coach = coach_snap.to_dict() or {}
            count = int(coach.get("ratingCount") or 0)
            total = float(coach.get("averageRating") or 0) * count

            if previous_snap.exists:
                total -= float((previous_snap.to_dict() or {}).get("rating") or 0)
            else:
                count += 1
            total += rating
            average = round_half_up(total / count, 1) if count else 0

            transaction.set(rating_ref, {"rating": rating, "ratedAt": firestore.SERVER_TIMESTAMP})
            transaction.update(coach_ref, {"averageRating": average, "ratingCount": count})
            for snap in rateable:
                update = {"ratingGiven": rating, "ratedTimestamp": firestore.SERVER_TIMESTAMP}
                # The selected request backs activeCoachId, so it keeps its status
                if (snap.to_dict() or {}).get("status") != RequestStatus.SELECTED.value:
                    update["status"] = RequestStatus.RATED.value
                transaction.update(snap.reference, update)
            return {"averageRating": average, "ratingCount": count}

        result = await self.database.run_transaction(_rate)
        logger.info(f"User {user_id} rated coach {coach_id} {rating}/5, new average {result['averageRating']}")
        return result

    # ------------------------------------------------------------------
    # Coach side
    # ------------------------------------------------------------------

    async def get_pending_requests(self, coach_id: str) -> List[Dict[str, Any]]:
        query = self.database.client.collection_group(COACH_REQUESTS).where(
            "nutritionistId", "==", coach_id
        ).where("status", "==", RequestStatus.PENDING.value)

        results = []
        async for snap in query.stream():
            user_id = snap.reference.parent.parent.id
            details = await self.get_user_details(user_id)
            if details is None:
                logger.warning(f"Skipping request {snap.id}: user {user_id} not found")
                continue
            results.append({
                "requestId": snap.id,
                "userId": user_id,
                **(snap.to_dict() or {}),
                "userDetails": details,
            })
        return results

    async def _answer_request(self, coach_id: str, user_id: str, request_id: str, accept: bool):
        request_ref = self.requests_of(user_id).document(request_id)
        status = RequestStatus.ACCEPTED if accept else RequestStatus.DECLINED
        timestamp_field = "acceptedTimestamp" if accept else "declinedTimestamp"

        async def _answer(transaction):
            snap = await request_ref.get(transaction=transaction)
            if not snap.exists:
                raise NotFound("Request not found.")
            request = snap.to_dict() or {}
            if request.get("nutritionistId") != coach_id:
                raise Forbidden("Request not directed at this coach.")
            if request.get("status") != RequestStatus.PENDING.value:
                raise Conflict("Request is no longer pending.")
            transaction.update(request_ref, {
                "status": status.value,
                timestamp_field: firestore.SERVER_TIMESTAMP,
            })

        await self.database.run_transaction(_answer)
        logger.info(f"Coach {coach_id} {status.value} request {request_id} of user {user_id}")

        coach_snap = await self.database.nutritionist(coach_id).get()
        coach_name = full_name(_data(coach_snap), "Your Coach")
        if accept:
            await self.notifier.invitation_accepted(user_id, coach_id, coach_name)
        else:
            await self.notifier.invitation_declined(user_id, coach_id, coach_name)

    async def accept_request(self, coach_id: str, user_id: str, request_id: str):
        await self._answer_request(coach_id, user_id, request_id, accept=True)

    async def decline_request(self, coach_id: str, user_id: str, request_id: str):
        await self._answer_request(coach_id, user_id, request_id, accept=False)

    async def coach_end_relationship(self, coach_id: str, client_id: str):
        client_ref = self.database.user(client_id)

        async def _end(transaction):
            client_snap = await client_ref.get(transaction=transaction)
            if not client_snap.exists:
                raise NotFound("Client not found.")
            if (client_snap.to_dict() or {}).get("activeCoachId") != coach_id:
                raise Forbidden("You are not this client's active coach.")
            coach_exists, selected = await self._read_relationship(transaction, client_id, coach_id)
            self._write_end(
                transaction, client_id, coach_id, coach_exists, selected,
                RequestStatus.ENDED_BY_COACH.value
            )

        await self.database.run_transaction(_end)
        logger.info(f"Coach {coach_id} ended relationship with client {client_id}")

    async def get_clients(self, coach_id: str) -> List[Dict[str, Any]]:
        coach_snap = await self.database.nutritionist(coach_id).get()
        if not coach_snap.exists:
            raise NotFound("Coach profile not found.")
        clients = []
        for client_id in (coach_snap.to_dict() or {}).get("clientIds") or []:
            details = await self.get_user_details(client_id)
            if details is not None:
                clients.append(details)
        return clients

    async def require_active_client(self, coach_id: str, client_id: str) -> Dict[str, Any]:
        """Client document, provided ``coach_id`` is the client's active coach."""
        client_snap = await self.database.user(client_id).get()
        if not client_snap.exists:
            raise NotFound("Client not found.")
        client = client_snap.to_dict() or {}
        if client.get("activeCoachId") != coach_id:
            raise Forbidden("You are not this client's active coach.")
        return client

    async def get_client_details(self, coach_id: str, client_id: str) -> Dict[str, Any]:
        client = await self.require_active_client(coach_id, client_id)
        details = user_public_details(client_id, client)
        for field in CLIENT_DETAIL_FIELDS:
            details[field] = client.get(field)
        return details

    def notes_ref(self, coach_id: str, client_id: str):
        return self.database.nutritionist(coach_id).collection(CLIENT_NOTES).document(client_id)

    async def get_client_notes(self, coach_id: str, client_id: str) -> Dict[str, Any]:
        await self.require_active_client(coach_id, client_id)
        snap = await self.notes_ref(coach_id, client_id).get()
        data = _data(snap)
        return {"notes": data.get("notes", ""), "lastUpdated": data.get("lastUpdated")}

    async def save_client_notes(self, coach_id: str, client_id: str, notes: str):
        await self.require_active_client(coach_id, client_id)
        await self.notes_ref(coach_id, client_id).set({
            "notes": notes,
            "lastUpdated": firestore.SERVER_TIMESTAMP,
        })

    async def get_dashboard_summary(self, coach_id: str) -> Dict[str, Any]:
        coach = _data(await self.database.nutritionist(coach_id).get())
        if not coach:
            logger.warning(f"Coach document {coach_id} not found, reporting zero clients")

        pending = await self.get_pending_requests(coach_id)
        newest_invitation = None
        if pending:
            newest = max(pending, key=lambda r: _sort_key(r.get("requestTimestamp")))
            newest_invitation = {
                "requestId": newest["requestId"],
                "userId": newest["userId"],
                "userDetails": newest["userDetails"],
                "requestTimestamp": newest.get("requestTimestamp"),
            }

        unread_query = self.database.collection(CHATS).where(
            "participants", "array_contains", coach_id
        ).where("coachUnreadCount", ">", 0)
        unread_chats = [snap async for snap in unread_query.stream()]
        unread_chats.sort(key=lambda snap: _sort_key((snap.to_dict() or {}).get("lastActivity")))

        oldest_unreplied = None
        if unread_chats:
            oldest = unread_chats[0].to_dict() or {}
            oldest_unreplied = {
                "id": unread_chats[0].id,
                "lastMessage": oldest.get("lastMessage"),
                "userDetails": oldest.get("userDetails"),
            }

        return {
            "activeClientCount": len(coach.get("clientIds") or []),
            "invitationRequestCount": len(pending),
            "newestInvitation": newest_invitation,
            "messagesNeedingReplyCount": sum(
                int((snap.to_dict() or {}).get("coachUnreadCount") or 0) for snap in unread_chats
            ),
            "oldestUnrepliedChat": oldest_unreplied,
        }


def _sort_key(value: Any):
    """Order timestamps with missing values first."""
    if value is None:
        return (0, 0.0)
    timestamp = getattr(value, "timestamp", None)
    return (1, timestamp() if callable(timestamp) else 0.0)
