"""
Static catalog of supported document types.

Built once at import time from frozen models; classifiers may extend it
with their own types but never mutate it.
"""

from typing import Tuple

from ..models import (
    DocumentCategory,
    DocumentLanguage,
    DocumentPatterns,
    DocumentType,
    DocumentTypeMetadata,
    LayoutPattern,
    LayoutPosition,
    LayoutType,
    StructurePattern,
    StructureType,
)


def _layout(type_: LayoutType, position: LayoutPosition, weight: float, *characteristics: str) -> LayoutPattern:
    return LayoutPattern(type=type_, position=position, characteristics=characteristics, weight=weight)


def _structure(type_: StructureType, weight: float, count: int = None,
               spacing: str = "normal", alignment: str = None) -> StructurePattern:
    return StructurePattern(type=type_, count=count, spacing=spacing, alignment=alignment, weight=weight)


_FORMAL_PORTRAIT = DocumentTypeMetadata()
_FORMAL_LANDSCAPE = DocumentTypeMetadata(orientation="landscape")


DOCUMENT_TYPES: Tuple[DocumentType, ...] = (
    DocumentType(
        id="employment_contract",
        name="Employment Contract",
        name_ar="عقد عمل",
        category=DocumentCategory.CONTRACT,
        subcategory="employment",
        patterns=DocumentPatterns(
            keywords=("employment", "contract", "salary", "position", "duties", "responsibilities", "termination"),
            keywords_ar=("عقد", "عمل", "راتب", "وظيفة", "مهام", "مسؤوليات", "إنهاء", "الخدمة", "الموظف", "صاحب العمل"),
            layout=(
                _layout(LayoutType.HEADER, LayoutPosition.TOP, 0.8, "company_logo", "title"),
                _layout(LayoutType.SIGNATURE, LayoutPosition.BOTTOM, 0.9, "signature_fields", "date"),
                _layout(LayoutType.SEAL, LayoutPosition.BOTTOM_RIGHT, 0.7, "official_seal"),
            ),
            structure=(
                _structure(StructureType.NUMBERED_LIST, 0.6, count=5),
                _structure(StructureType.CLAUSES, 0.8, alignment="justified"),
            ),
        ),
        metadata=_FORMAL_PORTRAIT,
    ),
    DocumentType(
        id="resignation_letter",
        name="Resignation Letter",
        name_ar="خطاب استقالة",
        category=DocumentCategory.FORM,
        subcategory="resignation",
        patterns=DocumentPatterns(
            keywords=("resignation", "resign", "notice", "last day", "effective date", "position"),
            keywords_ar=("استقالة", "أستقيل", "إشعار", "آخر يوم", "تاريخ الاستقالة", "منصب", "إخطار"),
            layout=(
                _layout(LayoutType.HEADER, LayoutPosition.TOP, 0.7, "date", "addressee"),
                _layout(LayoutType.SIGNATURE, LayoutPosition.BOTTOM, 0.9, "signature", "name"),
            ),
            structure=(
                _structure(StructureType.PARAGRAPHS, 0.8, count=3),
            ),
        ),
        metadata=_FORMAL_PORTRAIT,
    ),
    DocumentType(
        id="employment_certificate",
        name="Certificate of Employment",
        name_ar="شهادة خبرة",
        category=DocumentCategory.CERTIFICATE,
        subcategory="employment",
        patterns=DocumentPatterns(
            keywords=("certificate", "certify", "employed", "position", "duration", "good standing"),
            keywords_ar=("شهادة", "خبرة", "يشهد", "موظف", "منصب", "مدة", "حسن السيرة", "والسلوك"),
            layout=(
                _layout(LayoutType.HEADER, LayoutPosition.TOP, 0.9, "company_letterhead", "title"),
                _layout(LayoutType.SEAL, LayoutPosition.BOTTOM_RIGHT, 0.8, "official_seal", "stamp"),
                _layout(LayoutType.SIGNATURE, LayoutPosition.BOTTOM, 0.7, "authorized_signature"),
            ),
            structure=(
                _structure(StructureType.PARAGRAPHS, 0.7, count=2, alignment="justified"),
            ),
        ),
        metadata=_FORMAL_PORTRAIT,
    ),
    DocumentType(
        id="salary_certificate",
        name="Salary Certificate",
        name_ar="شهادة راتب",
        category=DocumentCategory.CERTIFICATE,
        subcategory="financial",
        patterns=DocumentPatterns(
            keywords=("salary", "wages", "compensation", "monthly", "annual", "income", "certificate"),
            keywords_ar=("راتب", "أجور", "مرتب", "شهري", "سنوي", "دخل", "شهادة", "مكافآت"),
            layout=(
                _layout(LayoutType.HEADER, LayoutPosition.TOP, 0.8, "company_info", "title"),
                _layout(LayoutType.TABLE, LayoutPosition.CENTER, 0.9, "salary_breakdown"),
                _layout(LayoutType.SIGNATURE, LayoutPosition.BOTTOM, 0.7, "hr_signature"),
            ),
            structure=(
                _structure(StructureType.SECTIONS, 0.6, count=3),
            ),
        ),
        metadata=_FORMAL_PORTRAIT,
    ),
    DocumentType(
        id="saudi_national_id",
        name="Saudi National ID",
        name_ar="بطاقة الهوية الوطنية",
        category=DocumentCategory.IDENTIFICATION,
        subcategory="national_id",
        patterns=DocumentPatterns(
            keywords=("national", "identity", "saudi arabia", "kingdom", "id number"),
            keywords_ar=("الهوية", "الوطنية", "المملكة", "العربية", "السعودية", "رقم الهوية"),
            layout=(
                _layout(LayoutType.HEADER, LayoutPosition.TOP, 0.9, "national_emblem", "kingdom_name"),
                _layout(LayoutType.FORM_FIELD, LayoutPosition.CENTER, 0.9, "photo", "personal_info"),
            ),
            structure=(
                _structure(StructureType.FIELDS, 0.8, count=8, spacing="tight"),
            ),
        ),
        metadata=_FORMAL_LANDSCAPE,
    ),
    DocumentType(
        id="saudi_passport",
        name="Saudi Passport",
        name_ar="جواز السفر السعودي",
        category=DocumentCategory.IDENTIFICATION,
        subcategory="passport",
        patterns=DocumentPatterns(
            keywords=("passport", "saudi arabia", "kingdom", "travel document", "passport number"),
            keywords_ar=("جواز", "سفر", "المملكة", "العربية", "السعودية", "وثيقة سفر"),
            layout=(
                _layout(LayoutType.HEADER, LayoutPosition.TOP, 0.9, "passport_cover", "kingdom_emblem"),
                _layout(LayoutType.FORM_FIELD, LayoutPosition.CENTER, 0.9, "photo", "bio_data"),
            ),
            structure=(
                _structure(StructureType.FIELDS, 0.8, count=10, spacing="tight"),
            ),
        ),
        metadata=_FORMAL_PORTRAIT,
    ),
    DocumentType(
        id="iqama",
        name="Residence Permit (Iqama)",
        name_ar="الإقامة",
        category=DocumentCategory.IDENTIFICATION,
        subcategory="residence_permit",
        patterns=DocumentPatterns(
            keywords=("residence", "permit", "iqama", "sponsor", "expiry", "profession"),
            keywords_ar=("إقامة", "كفيل", "انتهاء", "مهنة", "تصريح", "الإقامة"),
            layout=(
                _layout(LayoutType.HEADER, LayoutPosition.TOP, 0.8, "ministry_logo", "permit_title"),
                _layout(LayoutType.FORM_FIELD, LayoutPosition.CENTER, 0.9, "photo", "permit_details"),
            ),
            structure=(
                _structure(StructureType.FIELDS, 0.8, count=12, spacing="tight"),
            ),
        ),
        metadata=_FORMAL_LANDSCAPE,
    ),
    DocumentType(
        id="bank_statement",
        name="Bank Statement",
        name_ar="كشف حساب بنكي",
        category=DocumentCategory.FINANCIAL,
        subcategory="statement",
        patterns=DocumentPatterns(
            keywords=("bank", "statement", "account", "balance", "transaction", "deposit", "withdrawal"),
            keywords_ar=("بنك", "كشف", "حساب", "رصيد", "معاملة", "إيداع", "سحب", "مصرفي"),
            layout=(
                _layout(LayoutType.HEADER, LayoutPosition.TOP, 0.8, "bank_logo", "statement_period"),
                _layout(LayoutType.TABLE, LayoutPosition.CENTER, 0.9, "transaction_table"),
            ),
            structure=(
                _structure(StructureType.TABLE, 0.9, spacing="tight"),
            ),
        ),
        metadata=_FORMAL_PORTRAIT,
    ),
    DocumentType(
        id="commercial_registration",
        name="Commercial Registration Certificate",
        name_ar="شهادة السجل التجاري",
        category=DocumentCategory.CERTIFICATE,
        subcategory="commercial_registration",
        patterns=DocumentPatterns(
            keywords=("commercial registration", "cr number", "ministry of commerce", "trade name", "capital", "activity"),
            keywords_ar=("السجل التجاري", "سجل تجاري", "وزارة التجارة", "الاسم التجاري", "رأس المال", "النشاط", "تاريخ الانتهاء"),
            layout=(
                _layout(LayoutType.HEADER, LayoutPosition.TOP, 0.9, "ministry_logo", "certificate_title"),
                _layout(LayoutType.FORM_FIELD, LayoutPosition.CENTER, 0.8, "registration_details"),
                _layout(LayoutType.SEAL, LayoutPosition.BOTTOM_LEFT, 0.6, "barcode", "official_seal"),
            ),
            structure=(
                _structure(StructureType.FIELDS, 0.8, count=8, spacing="tight"),
            ),
        ),
        metadata=_FORMAL_PORTRAIT,
    ),
    DocumentType(
        id="handwritten_notes",
        name="Handwritten Notes",
        name_ar="ملاحظات مكتوبة بخط اليد",
        category=DocumentCategory.HANDWRITTEN,
        subcategory="notes",
        patterns=DocumentPatterns(
            keywords=("note", "memo", "reminder", "personal"),
            keywords_ar=("ملاحظة", "مذكرة", "تذكير", "شخصي"),
            layout=(
                _layout(LayoutType.PARAGRAPH, LayoutPosition.CENTER, 0.8, "handwriting", "informal_layout"),
            ),
            structure=(
                _structure(StructureType.PARAGRAPHS, 0.6, spacing="loose"),
            ),
        ),
        metadata=DocumentTypeMetadata(
            is_handwritten=True,
            language=DocumentLanguage.ARABIC,
            formality="informal",
            orientation="mixed",
        ),
    ),
    DocumentType(
        id="legal_document",
        name="Legal Document",
        name_ar="وثيقة قانونية",
        category=DocumentCategory.LEGAL,
        subcategory="general",
        patterns=DocumentPatterns(
            keywords=("whereas", "therefore", "party", "agreement", "hereby", "witness", "legal"),
            keywords_ar=("حيث", "لذلك", "طرف", "اتفاقية", "بموجب", "شاهد", "قانوني", "المحكمة"),
            layout=(
                _layout(LayoutType.HEADER, LayoutPosition.TOP, 0.7, "legal_header", "case_number"),
                _layout(LayoutType.SIGNATURE, LayoutPosition.BOTTOM, 0.8, "witness_signatures"),
            ),
            structure=(
                _structure(StructureType.NUMBERED_LIST, 0.7),
                _structure(StructureType.CLAUSES, 0.8),
            ),
        ),
        metadata=_FORMAL_PORTRAIT,
    ),
)


def get_document_type(type_id: str) -> DocumentType:
    """Look up a catalog entry by id; raises ``KeyError`` when unknown."""
    for doc_type in DOCUMENT_TYPES:
        if doc_type.id == type_id:
            return doc_type
    raise KeyError(type_id)
