"""
Service catalog shared by the calendar adapter and the messaging client.

Each service has a detailed description (calendar event titles) and a
friendly name (customer-facing confirmation messages). Identifiers outside
the catalog are passed through verbatim.
"""
from enum import Enum
from typing import Dict, Optional


class ServiceType(str, Enum):
    CORTE_PERSONALIZADO = "corte-personalizado"
    CORTE_BARBA_DIARQUIA = "corte-barba-diarquia"
    BARBA_PERSONALIZADA = "barba-personalizada"
    LIMPIEZA_FACIAL = "limpieza-facial"
    CORTE_TIJERAS = "corte-tijeras"
    CAMUFLAJE_CANAS = "camuflaje-canas"


DETAILED_DESCRIPTIONS: Dict[ServiceType, str] = {
    ServiceType.CORTE_PERSONALIZADO: "Corte de Cabello Personalizado",
    ServiceType.CORTE_BARBA_DIARQUIA: 'Corte y Barba "La Diarquía" - Experiencia Premium',
    ServiceType.BARBA_PERSONALIZADA: "Barba Personalizada con Toallas Calientes",
    ServiceType.LIMPIEZA_FACIAL: "Limpieza Facial FULL",
    ServiceType.CORTE_TIJERAS: "Corte sólo a Tijeras",
    ServiceType.CAMUFLAJE_CANAS: "Camuflaje de Canas",
}

FRIENDLY_NAMES: Dict[ServiceType, str] = {
    ServiceType.CORTE_PERSONALIZADO: "Corte de Cabello Personalizado",
    ServiceType.CORTE_BARBA_DIARQUIA: 'Corte y Barba "La Diarquía"',
    ServiceType.BARBA_PERSONALIZADA: "Barba Personalizada",
    ServiceType.LIMPIEZA_FACIAL: "Limpieza Facial FULL",
    ServiceType.CORTE_TIJERAS: "Corte sólo a Tijeras",
    ServiceType.CAMUFLAJE_CANAS: "Camuflaje de Canas",
}


def lookup_service(service_id: str) -> Optional[ServiceType]:
    try:
        return ServiceType(service_id)
    except ValueError:
        return None


def describe_service(service_id: str) -> str:
    """Detailed description for calendar events, or the raw id if unknown."""
    service = lookup_service(service_id)
    if service is None:
        return service_id
    return DETAILED_DESCRIPTIONS[service]


def friendly_service_name(service_id: str) -> str:
    """Short display name for customer messages, or the raw id if unknown."""
    service = lookup_service(service_id)
    if service is None:
        return service_id
    return FRIENDLY_NAMES[service]
