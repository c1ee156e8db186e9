"""Expiration, maintenance and anniversary alerts computed on read."""
from __future__ import annotations

import calendar
from datetime import date
from typing import List, Optional

from logitrack.core.config import get_settings
from logitrack.models.fleet import Alert, AlertSeverity, AlertType, ClientType, ValidityStatus
from logitrack.services.documents import corporate_document_service
from logitrack.services.resources import client_service, messenger_service, vehicle_service
from logitrack.services.scoring import local_today


def add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def next_anniversary(origin: date, today: date) -> date:
    """Next occurrence of `origin`'s month/day on or after `today` (Feb 29 falls back to Feb 28)."""
    for year in (today.year, today.year + 1):
        day = min(origin.day, calendar.monthrange(year, origin.month)[1])
        candidate = date(year, origin.month, day)
        if candidate >= today:
            return candidate
    return candidate


class AlertService:
    def get_active_alerts(self, today: Optional[date] = None) -> List[Alert]:
        today = today or local_today()
        settings = get_settings()
        alerts: List[Alert] = []

        for messenger in messenger_service.list_messengers():
            name = messenger.full_name
            if messenger.license_expiry:
                days = (messenger.license_expiry - today).days
                if days < 0:
                    alerts.append(
                        Alert(
                            id=f"lic-exp-{messenger.id}",
                            type=AlertType.LICENSE,
                            message=f"La licencia de {name} venció hace {abs(days)} días",
                            severity=AlertSeverity.CRITICAL,
                            entity_type="messenger",
                            entity_id=messenger.id,
                            due_date=messenger.license_expiry,
                            days_remaining=days,
                        )
                    )
                elif days <= settings.license_warning_days:
                    alerts.append(
                        Alert(
                            id=f"lic-warn-{messenger.id}",
                            type=AlertType.LICENSE,
                            message=f"La licencia de {name} vence en {days} días",
                            severity=AlertSeverity.WARNING,
                            entity_type="messenger",
                            entity_id=messenger.id,
                            due_date=messenger.license_expiry,
                            days_remaining=days,
                        )
                    )
            if messenger.dob:
                alert = self._birthday_alert(f"bday-m-{messenger.id}", name, messenger.dob, today, "messenger", messenger.id)
                if alert:
                    alerts.append(alert)

        for vehicle in vehicle_service.list_vehicles():
            if vehicle.insurance_expiry:
                days = (vehicle.insurance_expiry - today).days
                if days < 0:
                    alerts.append(
                        Alert(
                            id=f"ins-exp-{vehicle.id}",
                            type=AlertType.INSURANCE,
                            message=f"El seguro del vehículo {vehicle.code} ({vehicle.model}) ha vencido",
                            severity=AlertSeverity.CRITICAL,
                            entity_type="vehicle",
                            entity_id=vehicle.id,
                            due_date=vehicle.insurance_expiry,
                            days_remaining=days,
                        )
                    )
                elif days <= settings.insurance_warning_days:
                    severity = (
                        AlertSeverity.CRITICAL if days <= settings.insurance_critical_days else AlertSeverity.WARNING
                    )
                    alerts.append(
                        Alert(
                            id=f"ins-warn-{vehicle.id}",
                            type=AlertType.INSURANCE,
                            message=f"El seguro del vehículo {vehicle.code} vence en {days} días",
                            severity=severity,
                            entity_type="vehicle",
                            entity_id=vehicle.id,
                            due_date=vehicle.insurance_expiry,
                            days_remaining=days,
                        )
                    )

            for schedule in vehicle.maintenance_schedule:
                if not schedule.last_maintenance_date or not schedule.frequency_months:
                    continue
                due = add_months(schedule.last_maintenance_date, schedule.frequency_months)
                days = (due - today).days
                if days < 0:
                    alerts.append(
                        Alert(
                            id=f"maint-overdue-{vehicle.id}-{schedule.type}",
                            type=AlertType.MAINTENANCE,
                            message=f"Mantenimiento ({schedule.type}) para {vehicle.code} está atrasado por {abs(days)} días",
                            severity=AlertSeverity.CRITICAL,
                            entity_type="vehicle",
                            entity_id=vehicle.id,
                            due_date=due,
                            days_remaining=days,
                        )
                    )
                elif days <= settings.maintenance_warning_days:
                    alerts.append(
                        Alert(
                            id=f"maint-due-{vehicle.id}-{schedule.type}",
                            type=AlertType.MAINTENANCE,
                            message=f"Mantenimiento ({schedule.type}) para {vehicle.code} toca en {days} días",
                            severity=AlertSeverity.WARNING,
                            entity_type="vehicle",
                            entity_id=vehicle.id,
                            due_date=due,
                            days_remaining=days,
                        )
                    )

        for client in client_service.list_clients():
            label = client.full_name or client.location_name
            if client.type == ClientType.FISICA and client.dob:
                alert = self._birthday_alert(f"bday-c-{client.id}", label, client.dob, today, "client", client.id)
                if alert:
                    alerts.append(alert)
            if client.type == ClientType.JURIDICA and client.foundation_date:
                anniversary = next_anniversary(client.foundation_date, today)
                days = (anniversary - today).days
                if days <= settings.birthday_window_days:
                    years = anniversary.year - client.foundation_date.year
                    alerts.append(
                        Alert(
                            id=f"found-c-{client.id}",
                            type=AlertType.ANNIVERSARY,
                            message=f"{label} cumple {years} años de fundación en {days} días"
                            if days
                            else f"¡Hoy {label} cumple {years} años de fundación!",
                            severity=AlertSeverity.INFO,
                            entity_type="client",
                            entity_id=client.id,
                            due_date=anniversary,
                            days_remaining=days,
                        )
                    )

        for document in corporate_document_service.expiring_documents(today=today):
            expired = document.calculated_status == ValidityStatus.VENCIDO
            alerts.append(
                Alert(
                    id=f"doc-{document.id}",
                    type=AlertType.DOCUMENT,
                    message=f"El documento {document.name} ha vencido"
                    if expired
                    else f"El documento {document.name} vence en {document.days_until_expiry} días",
                    severity=AlertSeverity.CRITICAL if expired else AlertSeverity.WARNING,
                    entity_type="document",
                    entity_id=document.id,
                    due_date=document.expiry_date,
                    days_remaining=document.days_until_expiry,
                )
            )

        return alerts

    @staticmethod
    def _birthday_alert(
        alert_id: str,
        name: str,
        dob: date,
        today: date,
        entity_type: str,
        entity_id: str,
    ) -> Optional[Alert]:
        birthday = next_anniversary(dob, today)
        days = (birthday - today).days
        if days > get_settings().birthday_window_days:
            return None
        return Alert(
            id=alert_id,
            type=AlertType.BIRTHDAY,
            message=f"¡Hoy es el cumpleaños de {name}!" if days == 0 else f"El cumpleaños de {name} es en {days} días",
            severity=AlertSeverity.INFO,
            entity_type=entity_type,
            entity_id=entity_id,
            due_date=birthday,
            days_remaining=days,
        )


alert_service = AlertService()
