import logging
from typing import List

import requests

from . import config
from .schemas import VitalAlert

logger = logging.getLogger(__name__)


def maybe_notify(patient_id: str, alerts: List[VitalAlert]) -> bool:
    # Only critical alerts page the care team
    critical = [a for a in alerts if a.severity == "critical"]
    if not critical:
        return False
    try:
        requests.post(
            config.NOTIFY_URL,
            json={
                "patient_id": patient_id,
                "patient_name": critical[0].patient_name,
                "title": f"{len(critical)} critical vital alert(s)",
                "message": " | ".join(a.message for a in critical),
                "alerts": [a.model_dump(by_alias=True) for a in critical],
            },
            timeout=config.NOTIFY_TIMEOUT,
        )
    except requests.RequestException as exc:
        # monitoring keeps going when the notify service is down
        logger.warning("notify service unreachable for %s: %s", patient_id, exc)
        return False
    return True
