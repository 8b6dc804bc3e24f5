from __future__ import annotations

from paperswift.config import Settings
from paperswift.core.fields import EntitySchema, FieldSpec, FieldType
from paperswift.schemas import Course, Degree, Department, Exam, Scheme, Teacher


GENDER_CHOICES = (('M', 'Male'), ('F', 'Female'))


EXAMS = EntitySchema(
    name='exams',
    label='Exam',
    plural_label='Exams',
    path='exams',
    model=Exam,
    key_field='eid',
    key_type=int,
    key_assigned_by_server=True,
    fields=(
        FieldSpec('sem', 'Semester', FieldType.INTEGER, placeholder='Semester'),
        FieldSpec('scheme', 'Scheme', FieldType.INTEGER, references='schemes', placeholder='Scheme'),
        FieldSpec('is_supplementary', 'Supplementary exam', FieldType.BOOLEAN),
        FieldSpec('paper_submission_deadline', 'Submission deadline', FieldType.DATE),
    ),
    badge_fields=('sem', 'is_supplementary'),
    summary_fields=('scheme', 'paper_submission_deadline'),
)

COURSES = EntitySchema(
    name='courses',
    label='Course',
    plural_label='Courses',
    path='courses',
    model=Course,
    key_field='code',
    key_type=str,
    fields=(
        FieldSpec('code', 'Code', placeholder='Course code'),
        FieldSpec('name', 'Name', placeholder='Course name'),
        FieldSpec('sem', 'Semester', FieldType.INTEGER, placeholder='Semester'),
        FieldSpec('scheme', 'Scheme', FieldType.INTEGER, references='schemes', placeholder='Scheme'),
        FieldSpec('department', 'Department', references='departments', placeholder='Department code'),
        FieldSpec('syllabus_doc_url', 'Syllabus Document URL', required=False, widget='url'),
    ),
    title_field='name',
    badge_fields=('code', 'department'),
    summary_fields=('sem', 'scheme', 'syllabus_doc_url'),
)

DEPARTMENTS = EntitySchema(
    name='departments',
    label='Department',
    plural_label='Departments',
    path='departments',
    model=Department,
    key_field='code',
    key_type=str,
    fields=(
        FieldSpec('code', 'Code', placeholder='Department code'),
        FieldSpec('name', 'Name', placeholder='Department name'),
        FieldSpec('hod', 'Head of department', FieldType.INTEGER, references='teachers', placeholder='Teacher id'),
    ),
    title_field='name',
    badge_fields=('code',),
    summary_fields=('hod',),
)

DEGREES = EntitySchema(
    name='degrees',
    label='Degree',
    plural_label='Degrees',
    path='degrees',
    model=Degree,
    key_field='code',
    key_type=str,
    fields=(
        FieldSpec('code', 'Code', placeholder='Degree code'),
        FieldSpec('name', 'Name', placeholder='Degree name'),
    ),
    title_field='name',
    badge_fields=('code',),
)

SCHEMES = EntitySchema(
    name='schemes',
    label='Scheme',
    plural_label='Schemes',
    path='scemes',
    model=Scheme,
    key_field='sid',
    key_type=int,
    fields=(
        FieldSpec('sid', 'Scheme id', FieldType.INTEGER, placeholder='Scheme id'),
        FieldSpec('year', 'Year', FieldType.INTEGER, placeholder='Year'),
        FieldSpec('degree', 'Degree', references='degrees', placeholder='Degree code'),
        FieldSpec('guidelines_doc_url', 'Guidelines Document URL', required=False, widget='url'),
    ),
    badge_fields=('degree', 'year'),
    summary_fields=('guidelines_doc_url',),
)

TEACHERS = EntitySchema(
    name='teachers',
    label='Teacher',
    plural_label='Teachers',
    path='teachers',
    model=Teacher,
    key_field='id',
    key_type=int,
    key_assigned_by_server=True,
    fields=(
        FieldSpec('name', 'Name', placeholder='Full name'),
        FieldSpec('gender', 'Gender', FieldType.CHOICE, choices=GENDER_CHOICES),
        FieldSpec('is_external', 'Is External?', FieldType.BOOLEAN),
        FieldSpec('designation', 'Designation'),
        FieldSpec('qualification', 'Qualification', required=False),
        FieldSpec('mobile_no', 'Mobile number', widget='tel'),
        FieldSpec('address', 'Address', required=False),
        FieldSpec('pan_no', 'Pan number', required=False),
        FieldSpec('dob', 'Date of birth', FieldType.DATE),
        FieldSpec('bank_account_no', 'Bank Account Number', required=False),
        FieldSpec('bank_ifsc', 'Bank IFSC Code', required=False),
        FieldSpec('bank_name', 'Bank Name', required=False),
        FieldSpec('user', 'User', FieldType.INTEGER, placeholder='User id'),
    ),
    title_field='name',
    badge_fields=('designation', 'is_external'),
    summary_fields=('mobile_no', 'qualification'),
)

ALL_SCHEMAS: tuple[EntitySchema, ...] = (EXAMS, COURSES, TEACHERS, DEPARTMENTS, DEGREES, SCHEMES)


def resource_schemas(config: Settings) -> tuple[EntitySchema, ...]:
    scheme_path = (config.scheme_resource_path or SCHEMES.path).strip('/')
    return tuple(schema.with_path(scheme_path) if schema is SCHEMES else schema for schema in ALL_SCHEMAS)


def dependents_of(name: str, schemas: tuple[EntitySchema, ...] = ALL_SCHEMAS) -> set[str]:
    """Resources whose records embed a key of ``name``; their cached lists go stale with it."""
    return {schema.name for schema in schemas if name in schema.references}
