from fastapi import Request
from services.scheduler import SweepScheduler
from services.sweeper import ExpiredEventSweeper
from services.transitions import ApplicationTransitionService




# instâncias de longa duração criadas em main.py e guardadas em app.state

def get_transition_service(request: Request) -> ApplicationTransitionService:
    return request.app.state.transition_service


def get_sweep_scheduler(request: Request) -> SweepScheduler:
    return request.app.state.sweep_scheduler


def get_event_sweeper(request: Request) -> ExpiredEventSweeper:
    return request.app.state.sweep_scheduler.sweeper
