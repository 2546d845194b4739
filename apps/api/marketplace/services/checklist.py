"""Required-document checklist per applicant role."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ..models.document import ApplicantType


@dataclass(frozen=True, slots=True)
class RequiredDocument:
    type: str
    label: str


REQUIRED_DOCUMENTS: Mapping[ApplicantType, tuple[RequiredDocument, ...]] = {
    ApplicantType.POSTULANT: (
        RequiredDocument("cedula", "National identity card"),
        RequiredDocument("dicom", "Commercial credit report (DICOM 360)"),
        RequiredDocument("liquidaciones", "Last three payslips"),
        RequiredDocument("contrato", "Current employment contract"),
        RequiredDocument("antiguedad", "Employment seniority certificate"),
        RequiredDocument("cotizaciones", "Pension contributions certificate (AFP)"),
        RequiredDocument("comprobante_domicilio", "Proof of address"),
    ),
    ApplicantType.GUARANTOR: (
        RequiredDocument("cedula", "National identity card"),
        RequiredDocument("dicom", "Commercial credit report (DICOM 360)"),
        RequiredDocument("liquidaciones", "Last three payslips"),
        RequiredDocument("comprobante_domicilio", "Proof of address"),
    ),
}

DOCUMENT_LABELS: dict[str, str] = {
    doc.type: doc.label for docs in REQUIRED_DOCUMENTS.values() for doc in docs
}


@dataclass(slots=True)
class ApplicantChecklist:
    applicant_id: str
    applicant_type: ApplicantType
    name: str
    required: list[RequiredDocument] = field(default_factory=list)
    satisfied: list[str] = field(default_factory=list)
    missing: list[RequiredDocument] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing


def _role(value: ApplicantType | str) -> ApplicantType | None:
    try:
        return ApplicantType(value)
    except ValueError:
        return None


def required_documents(role: ApplicantType | str) -> tuple[RequiredDocument, ...]:
    """Static requirement table lookup; unknown roles require nothing."""

    resolved = _role(role)
    if resolved is None:
        return ()
    return REQUIRED_DOCUMENTS[resolved]


def _document_type(document: Any) -> str | None:
    if isinstance(document, Mapping):
        return document.get("document_type")
    return getattr(document, "document_type", None)


def missing_documents(role: ApplicantType | str, documents: Iterable[Any]) -> list[RequiredDocument]:
    """Required documents with no uploaded row of that type.

    Any uploaded row satisfies its type, whatever its review status, including
    ``rejected``.
    """

    satisfied = {_document_type(doc) for doc in documents}
    return [doc for doc in required_documents(role) if doc.type not in satisfied]


def build_checklist(
    applicants: Iterable[tuple[str, ApplicantType, str]],
    documents: Iterable[Any],
) -> list[ApplicantChecklist]:
    """Checklist for each ``(applicant_id, role, name)`` over the application documents.

    Applicants with an unknown role have no requirements and are left out.
    """

    by_applicant: dict[str, list[Any]] = {}
    for doc in documents:
        applicant_id = doc.get("applicant_id") if isinstance(doc, Mapping) else getattr(doc, "applicant_id", None)
        by_applicant.setdefault(applicant_id, []).append(doc)

    checklists = []
    for applicant_id, role, name in applicants:
        resolved = _role(role)
        if resolved is None:
            continue
        own_docs = by_applicant.get(applicant_id, [])
        required = list(REQUIRED_DOCUMENTS[resolved])
        missing = missing_documents(resolved, own_docs)
        missing_types = {doc.type for doc in missing}
        checklists.append(
            ApplicantChecklist(
                applicant_id=applicant_id,
                applicant_type=resolved,
                name=name,
                required=required,
                satisfied=[doc.type for doc in required if doc.type not in missing_types],
                missing=missing,
            )
        )
    return checklists
