import logging
from datetime import timedelta
from repositories.auth import UserRepository
from repositories.event import EventRepository
from repositories.application import ApplicationRepository
from utils.dates import utcnow


logger = logging.getLogger(__name__)


async def init_profiles():
    """Perfis de teste: uma organização e dois voluntários"""
    organization = await UserRepository.create_profile(
        "Associação Mãos Dadas", "organization", email="contacto@maosdadas.pt"
    )
    volunteers = [
        await UserRepository.create_profile("Ana Silva", "volunteer", email="ana.silva@example.pt"),
        await UserRepository.create_profile("Rui Costa", "volunteer"),
    ]
    return organization, volunteers


async def init_events(organization_id: str):
    """Eventos de teste: um já terminado, um a decorrer e um futuro"""
    now = utcnow()
    return [
        await EventRepository.create_event(
            organization_id, "Limpeza da praia de Carcavelos", now - timedelta(days=2), duration="3 horas",
            volunteers_registered=12
        ),
        await EventRepository.create_event(
            organization_id, "Recolha de alimentos", now - timedelta(minutes=30), duration="2h"
        ),
        await EventRepository.create_event(
            organization_id, "Plantação de árvores em Monsanto", now + timedelta(days=7), duration="1h 30m"
        ),
    ]


async def init_all_test_data():
    """Criar todos os dados de teste e registar os tokens de sessão"""
    organization, volunteers = await init_profiles()
    events = await init_events(organization.id)

    for volunteer in volunteers:
        await ApplicationRepository.create_application(events[2].id, volunteer.id, message="Gostava muito de ajudar!")

    for profile in (organization, *volunteers):
        token = await UserRepository.create_user_session(profile.id)
        logger.info("Test session: name=%s type=%s token=%s", profile.name, profile.type, token)
    logger.info("Test data created")
