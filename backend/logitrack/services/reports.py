"""Route-history reports: filtering, summary statistics and CSV/XLSX/PDF exports."""
from __future__ import annotations

from io import BytesIO
from typing import List, Tuple

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from logitrack.core.logging import logger
from logitrack.models.gamification import RouteHistory, RouteHistoryFilters
from logitrack.models.reports import (
    ClientVisits,
    DailyCount,
    ExportFormat,
    MessengerReportStats,
    ReportFilters,
    ReportSummary,
)
from logitrack.services.route_history import route_history_service
from logitrack.services.scoring import local_datetime, local_day


DURATION_BUCKETS: List[Tuple[str, int, float]] = [
    ("0-15", 0, 15),
    ("16-30", 16, 30),
    ("31-60", 31, 60),
    (">60", 61, float("inf")),
]

EXPORT_COLUMNS = {
    "day": "Fecha",
    "messenger_name": "Mensajero",
    "vehicle_code": "Vehículo",
    "client_name": "Cliente",
    "start": "Inicio",
    "end": "Fin",
    "duration": "Duración (min)",
    "star_rating": "Calificación",
    "points_earned": "Puntos",
    "note": "Nota",
}

MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.PDF: "application/pdf",
}


class ReportService:
    def filtered_history(self, filters: ReportFilters) -> List[RouteHistory]:
        """Routes whose start falls between start_date and the end of end_date (local days)."""
        records = route_history_service.get_route_history(
            RouteHistoryFilters(messenger_id=filters.messenger_id, client_id=filters.client_id)
        )
        if filters.start_date:
            records = [item for item in records if local_day(item.start_time) >= filters.start_date]
        if filters.end_date:
            records = [item for item in records if local_day(item.start_time) <= filters.end_date]
        return records

    @staticmethod
    def _frame(records: List[RouteHistory]) -> pd.DataFrame:
        columns = [
            "id",
            "messenger_id",
            "messenger_name",
            "vehicle_code",
            "client_id",
            "client_name",
            "day",
            "start",
            "end",
            "duration",
            "star_rating",
            "points_earned",
            "note",
        ]
        rows = [
            {
                "id": item.id,
                "messenger_id": item.messenger_id,
                "messenger_name": item.messenger_name,
                "vehicle_code": item.vehicle_code,
                "client_id": item.client_id,
                "client_name": item.client_name,
                "day": local_day(item.start_time),
                "start": local_datetime(item.start_time).strftime("%H:%M"),
                "end": local_datetime(item.end_time).strftime("%H:%M"),
                "duration": item.duration,
                "star_rating": item.star_rating,
                "points_earned": item.points_earned,
                "note": item.note,
            }
            for item in records
        ]
        return pd.DataFrame(rows, columns=columns)

    def summary(self, filters: ReportFilters) -> ReportSummary:
        df = self._frame(self.filtered_history(filters))
        distribution = {label: 0 for label, _, _ in DURATION_BUCKETS}
        if df.empty:
            return ReportSummary(filters=filters, duration_distribution=distribution)

        by_messenger = (
            df.groupby("messenger_id")
            .agg(
                messenger_name=("messenger_name", "first"),
                deliveries=("id", "count"),
                average_duration=("duration", "mean"),
                points=("points_earned", "sum"),
            )
            .reset_index()
            .sort_values(["deliveries", "messenger_name"], ascending=[False, True])
        )
        messenger_stats = [
            MessengerReportStats(
                messenger_id=str(row.messenger_id),
                messenger_name=str(row.messenger_name),
                deliveries=int(row.deliveries),
                average_duration=round(float(row.average_duration), 1),
                points=int(row.points),
            )
            for row in by_messenger.itertuples(index=False)
        ]

        by_client = (
            df.groupby("client_id")
            .agg(client_name=("client_name", "first"), visits=("id", "count"))
            .reset_index()
            .sort_values(["visits", "client_name"], ascending=[False, True])
            .head(10)
        )
        top_clients = [
            ClientVisits(client_id=str(row.client_id), client_name=str(row.client_name), visits=int(row.visits))
            for row in by_client.itertuples(index=False)
        ]

        for label, low, high in DURATION_BUCKETS:
            distribution[label] = int(((df["duration"] >= low) & (df["duration"] <= high)).sum())

        daily = df.groupby("day").size().sort_index()
        daily_counts = [DailyCount(day=day, routes=int(count)) for day, count in daily.items()]

        return ReportSummary(
            filters=filters,
            total_routes=int(len(df)),
            average_duration=round(float(df["duration"].mean()), 1),
            messenger_stats=messenger_stats,
            top_clients=top_clients,
            duration_distribution=distribution,
            daily_counts=daily_counts,
        )

    def _export_frame(self, filters: ReportFilters) -> pd.DataFrame:
        df = self._frame(self.filtered_history(filters))
        return df[list(EXPORT_COLUMNS)].rename(columns=EXPORT_COLUMNS)

    def export_csv(self, filters: ReportFilters) -> bytes:
        return self._export_frame(filters).to_csv(index=False).encode("utf-8-sig")

    def export_xlsx(self, filters: ReportFilters) -> bytes:
        summary = self.summary(filters)
        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            self._export_frame(filters).to_excel(writer, sheet_name="Rutas", index=False)
            pd.DataFrame(
                [stat.model_dump() for stat in summary.messenger_stats],
                columns=["messenger_id", "messenger_name", "deliveries", "average_duration", "points"],
            ).to_excel(writer, sheet_name="Mensajeros", index=False)
            pd.DataFrame(
                list(summary.duration_distribution.items()),
                columns=["Rango (min)", "Rutas"],
            ).to_excel(writer, sheet_name="Distribución", index=False)
        return buffer.getvalue()

    def export_pdf(self, filters: ReportFilters) -> bytes:
        summary = self.summary(filters)
        frame = self._export_frame(filters).drop(columns=["Nota"])
        styles = getSampleStyleSheet()

        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=landscape(letter),
            leftMargin=0.5 * inch,
            rightMargin=0.5 * inch,
            topMargin=0.5 * inch,
            bottomMargin=0.5 * inch,
        )
        period = f"{filters.start_date or '...'} - {filters.end_date or '...'}"
        story = [
            Paragraph("Reporte de Rutas", styles["Title"]),
            Paragraph(f"Periodo: {period}", styles["Normal"]),
            Spacer(1, 12),
        ]

        summary_rows = [
            ["Total de rutas", str(summary.total_routes)],
            ["Duración promedio (min)", f"{summary.average_duration:.1f}"],
        ]
        summary_rows += [[f"Duración {label}", str(count)] for label, count in summary.duration_distribution.items()]
        story.append(
            Table(
                summary_rows,
                colWidths=[2.5 * inch, 1.5 * inch],
                style=TableStyle(
                    [
                        ("BACKGROUND", (0, 0), (0, -1), colors.HexColor("#dbeafe")),
                        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#94a3b8")),
                        ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ]
                ),
            )
        )
        story.append(Spacer(1, 16))

        rows = [list(frame.columns)] + [[str(value) for value in row] for row in frame.itertuples(index=False)]
        story.append(
            Table(
                rows,
                repeatRows=1,
                style=TableStyle(
                    [
                        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1e3a5f")),
                        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                        ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#cbd5e1")),
                        ("FONTSIZE", (0, 0), (-1, -1), 8),
                        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f1f5f9")]),
                    ]
                ),
            )
        )
        doc.build(story)
        return buffer.getvalue()

    def export(self, filters: ReportFilters, export_format: ExportFormat) -> Tuple[bytes, str, str]:
        """Return (payload, media type, file name) for the requested format."""
        if export_format == ExportFormat.CSV:
            payload = self.export_csv(filters)
        elif export_format == ExportFormat.XLSX:
            payload = self.export_xlsx(filters)
        else:
            payload = self.export_pdf(filters)
        logger.info("Report exported", format=export_format.value, size=len(payload))
        return payload, MEDIA_TYPES[export_format], f"reporte_rutas.{export_format.value}"


report_service = ReportService()
