# gateway/deps/settlement.py
from fastapi import Request

from gateway.services.settlement import SettlementWorker


def get_settlement(request: Request) -> SettlementWorker:
    """Dependency returning the application's settlement worker."""
    return request.app.state.settlement
