"""Versioned corporate documents with computed validity."""
from __future__ import annotations

from datetime import date
from typing import List, Optional

from logitrack.core.config import get_settings
from logitrack.models.fleet import (
    CorporateDocument,
    CorporateDocumentUpload,
    CorporateDocumentView,
    DocumentCategory,
    DocumentStatus,
    ValidityStatus,
)
from logitrack.services.audit import audit_service
from logitrack.services.repository import CollectionRepository, new_id, utc_now
from logitrack.services.scoring import local_today
from logitrack.services.storage import CORPORATE_DOCUMENTS


def validity_status(expiry_date: Optional[date], today: date) -> tuple[ValidityStatus, Optional[int]]:
    if expiry_date is None:
        return ValidityStatus.VIGENTE, None
    days = (expiry_date - today).days
    if days < 0:
        return ValidityStatus.VENCIDO, days
    if days <= get_settings().document_expiry_warning_days:
        return ValidityStatus.POR_VENCER, days
    return ValidityStatus.VIGENTE, days


class CorporateDocumentService:
    def __init__(self) -> None:
        self._repo = CollectionRepository(CORPORATE_DOCUMENTS, "doc")

    def _all(self) -> List[CorporateDocument]:
        return [CorporateDocument.model_validate(row) for row in self._repo.all()]

    @staticmethod
    def enrich(document: CorporateDocument, today: Optional[date] = None) -> CorporateDocumentView:
        status, days = validity_status(document.expiry_date, today or local_today())
        return CorporateDocumentView(**document.model_dump(), calculated_status=status, days_until_expiry=days)

    def get_documents(
        self,
        category: Optional[DocumentCategory] = None,
        today: Optional[date] = None,
    ) -> List[CorporateDocumentView]:
        documents = [doc for doc in self._all() if doc.status == DocumentStatus.ACTIVE]
        if category:
            documents = [doc for doc in documents if doc.category == category]
        return [self.enrich(doc, today=today) for doc in documents]

    def get_document_history(self, parent_id: str) -> List[CorporateDocumentView]:
        family = [doc for doc in self._all() if doc.parent_id == parent_id]
        if not family:
            raise KeyError(parent_id)
        return [self.enrich(doc) for doc in sorted(family, key=lambda doc: doc.version, reverse=True)]

    def upload_document(self, request: CorporateDocumentUpload, actor: str) -> CorporateDocumentView:
        """Start a new family, or archive the active version and store the next one."""
        rows = self._repo.all()
        version = 1
        parent_id = request.parent_id
        if parent_id:
            family = [row for row in rows if row.get("parent_id") == parent_id]
            if not family:
                raise KeyError(parent_id)
            version = max(int(row.get("version") or 1) for row in family) + 1
            for row in family:
                if row.get("status") == DocumentStatus.ACTIVE.value:
                    row["status"] = DocumentStatus.ARCHIVED.value
        else:
            parent_id = new_id("doc-fam")

        document = CorporateDocument(
            id=new_id("doc"),
            parent_id=parent_id,
            version=version,
            status=DocumentStatus.ACTIVE,
            uploaded_by=actor,
            uploaded_at=utc_now(),
            **request.model_dump(exclude={"parent_id"}),
        )
        rows.append(document.model_dump(mode="json"))
        self._repo.save_all(rows)
        audit_service.log_action(
            "UPLOAD_DOCUMENT",
            f"Uploaded {document.name} v{document.version}",
            actor,
            metadata={"document_id": document.id, "parent_id": parent_id},
        )
        return self.enrich(document)

    def expiring_documents(self, today: Optional[date] = None) -> List[CorporateDocumentView]:
        return [
            doc
            for doc in self.get_documents(today=today)
            if doc.alert_enabled and doc.calculated_status != ValidityStatus.VIGENTE
        ]


corporate_document_service = CorporateDocumentService()
