from moodwallet.interventions.api.routes.interventions import router as interventions
from moodwallet.interventions.api.routes.meta import router as meta
from moodwallet.interventions.api.routes.savings import router as savings

api_routers = [
    interventions,
    savings,
    meta,
]
