from fastapi import APIRouter

from . import attendance, guest_passes, members, reports, subscriptions

router = APIRouter(prefix="/v1")
router.include_router(attendance.router)
router.include_router(members.router)
# freeze endpoints live under /subscriptions/{id}
router.include_router(subscriptions.router)
router.include_router(guest_passes.router)
router.include_router(reports.router)
