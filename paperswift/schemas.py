from datetime import date

from pydantic import BaseModel


class Exam(BaseModel):
    eid: int
    sem: int | None = None
    is_supplementary: bool = False
    paper_submission_deadline: date | None = None
    scheme: int | None = None


class Course(BaseModel):
    code: str
    name: str = ''
    department: str | None = None
    sem: int | None = None
    scheme: int | None = None
    syllabus_doc_url: str | None = None


class Department(BaseModel):
    code: str
    name: str = ''
    hod: int | None = None


class Degree(BaseModel):
    code: str
    name: str = ''


class Scheme(BaseModel):
    sid: int
    degree: str | None = None
    year: int | None = None
    guidelines_doc_url: str | None = None


class Teacher(BaseModel):
    id: int
    name: str = ''
    is_external: bool = False
    # Kept as a plain string so an unexpected value from the backend does not break the list.
    gender: str | None = None
    dob: date | None = None
    mobile_no: str | None = None
    address: str | None = None
    designation: str | None = None
    qualification: str | None = None
    bank_account_no: str | None = None
    bank_ifsc: str | None = None
    bank_name: str | None = None
    pan_no: str | None = None
    user: int | None = None


class User(BaseModel):
    pk: int
    username: str = ''
    email: str = ''
    first_name: str = ''
    last_name: str = ''

    @property
    def initial(self) -> str:
        source = self.email or self.username
        return source[:1].upper() if source else '?'
