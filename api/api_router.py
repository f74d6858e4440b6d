from fastapi                            import APIRouter
from .auth.auth                         import router as auth_router
from .habits.habits                     import router as habits_router
from .ledger.completions                import router as completions_router
from .ledger.skips                      import router as skips_router
from .statistics.statistics             import router as statistics_router
from .notifications.notifications       import router as notifications_router


api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth_router)
api_router.include_router(completions_router)
api_router.include_router(skips_router)
api_router.include_router(statistics_router)
api_router.include_router(habits_router)
api_router.include_router(notifications_router)
