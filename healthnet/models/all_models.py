# healthnet/models/all_models.py
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text, Integer, JSON, Enum, Date, Uuid, UniqueConstraint, Index
from sqlalchemy.orm import declarative_base, relationship
import enum
import uuid
from datetime import datetime
import pytz

Base = declarative_base()


def utc_now():
    """Naive UTC timestamp; every DateTime column stores naive UTC."""
    return datetime.now(pytz.utc).replace(tzinfo=None)

# Enums
class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    PATIENT = "PATIENT"

class Gender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"

class DoctorType(str, enum.Enum):
    MEDICAL_DOCTOR = "MEDICAL_DOCTOR"
    LAB_TECHNICIAN = "LAB_TECHNICIAN"

class ProfileStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"

class InsuranceStatus(str, enum.Enum):
    INSURED = "INSURED"
    UNINSURED = "UNINSURED"

class FacilityType(str, enum.Enum):
    HOSPITAL = "HOSPITAL"
    CLINIC = "CLINIC"
    LABORATORY = "LABORATORY"

class DiagnosisStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    RESCHEDULED = "RESCHEDULED"
    COMPLETED = "COMPLETED"

class LabResultStatus(str, enum.Enum):
    NORMAL = "NORMAL"
    ABNORMAL = "ABNORMAL"
    INCONCLUSIVE = "INCONCLUSIVE"

class AllergySeverity(str, enum.Enum):
    MILD = "MILD"
    MODERATE = "MODERATE"
    SEVERE = "SEVERE"

class NotificationType(str, enum.Enum):
    ASSIGNMENT = "ASSIGNMENT"
    DIAGNOSIS = "DIAGNOSIS"
    LAB_RESULT = "LAB_RESULT"
    APPOINTMENT = "APPOINTMENT"
    SYSTEM = "SYSTEM"

# ================================
# FACILITIES
# ================================

class Facility(Base):
    __tablename__ = "facilities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    hospital_id = Column(String(20), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(Enum(FacilityType, name="facility_type"), nullable=False, default=FacilityType.HOSPITAL)
    city_town = Column(String(100))
    phone = Column(String(20))
    email = Column(String(255))
    address = Column(Text)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    admins = relationship("AdminProfile", back_populates="facility")
    doctors = relationship("DoctorProfile", back_populates="facility")
    patients = relationship("PatientProfile", back_populates="facility")

# ================================
# USERS & ROLE PROFILES
# ================================

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(20), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20))
    password = Column(String(255), nullable=False)
    role = Column(Enum(UserRole, name="user_role"), nullable=False)
    gender = Column(Enum(Gender, name="gender"))
    dob = Column(Date)
    address = Column(Text)
    nationality = Column(String(100))
    place_of_birth = Column(String(255))
    token_version = Column(Integer, nullable=False, default=0)
    last_login_at = Column(DateTime)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    admin_profile = relationship("AdminProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    doctor_profile = relationship("DoctorProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    patient_profile = relationship("PatientProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    @property
    def profile(self):
        """The single role profile, selected by role."""
        if self.role == UserRole.ADMIN:
            return self.admin_profile
        if self.role == UserRole.DOCTOR:
            return self.doctor_profile
        return self.patient_profile

    @property
    def is_suspended(self) -> bool:
        """Admins have no status; doctors and patients are suspended when INACTIVE."""
        profile = self.profile
        if self.role == UserRole.ADMIN or profile is None:
            return False
        return profile.status == ProfileStatus.INACTIVE

class AdminProfile(Base):
    __tablename__ = "admin_profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    admin_id = Column(String(20), unique=True, nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    facility_id = Column(String(20), ForeignKey("facilities.hospital_id"))
    created_at = Column(DateTime, default=utc_now)

    # Relationships
    user = relationship("User", back_populates="admin_profile")
    facility = relationship("Facility", back_populates="admins")

class DoctorProfile(Base):
    __tablename__ = "doctor_profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    doctor_id = Column(String(20), unique=True, nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    license_number = Column(String(100), nullable=False)
    type = Column(Enum(DoctorType, name="doctor_type"), nullable=False, default=DoctorType.MEDICAL_DOCTOR)
    specialization = Column(String(255))
    national_id = Column(String(50))
    facility_id = Column(String(20), ForeignKey("facilities.hospital_id"))
    created_by = Column(String(20))
    status = Column(Enum(ProfileStatus, name="doctor_status"), nullable=False, default=ProfileStatus.ACTIVE)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    user = relationship("User", back_populates="doctor_profile")
    facility = relationship("Facility", back_populates="doctors")
    assignments = relationship("Assignment", back_populates="doctor")

class PatientProfile(Base):
    __tablename__ = "patient_profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = Column(String(20), unique=True, nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    blood_type = Column(String(5))
    disability = Column(Text)
    national_id = Column(String(50))
    insurance_status = Column(Enum(InsuranceStatus, name="insurance_status"), nullable=False, default=InsuranceStatus.UNINSURED)
    facility_id = Column(String(20), ForeignKey("facilities.hospital_id"))
    created_by = Column(String(20))
    status = Column(Enum(ProfileStatus, name="patient_status"), nullable=False, default=ProfileStatus.ACTIVE)
    blood_type_visible = Column(Boolean, nullable=False, default=False)
    disability_visible = Column(Boolean, nullable=False, default=False)
    allergies_visible = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    user = relationship("User", back_populates="patient_profile")
    facility = relationship("Facility", back_populates="patients")
    emergency_info = relationship("EmergencyInfo", back_populates="patient", uselist=False, cascade="all, delete-orphan")
    assignments = relationship("Assignment", back_populates="patient")
    diagnoses = relationship("Diagnosis", back_populates="patient")
    lab_results = relationship("LabResult", back_populates="patient")
    appointments = relationship("Appointment", back_populates="patient")
    allergies = relationship("Allergy", back_populates="patient", cascade="all, delete-orphan")
    qr_codes = relationship("QRCode", back_populates="patient")

class EmergencyInfo(Base):
    __tablename__ = "emergency_info"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = Column(String(20), ForeignKey("patient_profiles.patient_id", ondelete="CASCADE"), unique=True, nullable=False)
    patient_name = Column(String(255))
    patient_dob = Column(Date)
    blood_type = Column(String(5))
    known_allergies = Column(Text)
    chronic_conditions = Column(Text)
    current_medications = Column(Text)
    disability_info = Column(Text)
    emergency_contact_name = Column(String(255))
    emergency_contact_phone = Column(String(20))
    emergency_contact_relationship = Column(String(100))
    insurance_status = Column(Enum(InsuranceStatus, name="emergency_insurance_status"))
    last_updated = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    patient = relationship("PatientProfile", back_populates="emergency_info")

# ================================
# ASSIGNMENTS
# ================================

class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    assignment_id = Column(String(20), unique=True, nullable=False, index=True)
    doctor_id = Column(String(20), ForeignKey("doctor_profiles.doctor_id"), nullable=False)
    patient_id = Column(String(20), ForeignKey("patient_profiles.patient_id"), nullable=False)
    assigned_by = Column(String(20), ForeignKey("admin_profiles.admin_id"))
    notes = Column(Text)
    assigned_at = Column(DateTime, default=utc_now)
    # NULL while the assignment is active
    end_date = Column(DateTime)

    # Relationships
    doctor = relationship("DoctorProfile", back_populates="assignments")
    patient = relationship("PatientProfile", back_populates="assignments")

    __table_args__ = (
        Index("ix_assignments_doctor_patient", "doctor_id", "patient_id"),
    )

    @property
    def is_active(self) -> bool:
        return self.end_date is None

# ================================
# CLINICAL RECORDS
# ================================

class Diagnosis(Base):
    __tablename__ = "diagnoses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    diagnosis_id = Column(String(20), unique=True, nullable=False, index=True)
    patient_id = Column(String(20), ForeignKey("patient_profiles.patient_id"), nullable=False, index=True)
    doctor_id = Column(String(20), ForeignKey("doctor_profiles.doctor_id"), nullable=False)
    facility_id = Column(String(20), ForeignKey("facilities.hospital_id"))
    symptoms = Column(Text, nullable=False)
    diagnosed_disease = Column(String(255))
    disease_name = Column(String(255), nullable=False)
    medications = Column(Text)
    suggestions = Column(Text)
    conclusion = Column(Text)
    status = Column(Enum(DiagnosisStatus, name="diagnosis_status"), nullable=False, default=DiagnosisStatus.PENDING)
    emergency_visible = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    patient = relationship("PatientProfile", back_populates="diagnoses")
    doctor = relationship("DoctorProfile")
    facility = relationship("Facility")

class LabResult(Base):
    __tablename__ = "lab_results"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lab_id = Column(String(20), unique=True, nullable=False, index=True)
    patient_id = Column(String(20), ForeignKey("patient_profiles.patient_id"), nullable=False, index=True)
    doctor_id = Column(String(20), ForeignKey("doctor_profiles.doctor_id"), nullable=False)
    facility_id = Column(String(20), ForeignKey("facilities.hospital_id"))
    type = Column(String(100), nullable=False)
    test_name = Column(String(255))
    result_summary = Column(Text)
    findings = Column(Text)
    notes = Column(Text)
    is_abnormal = Column(Boolean, nullable=False, default=False)
    file_name = Column(String(255))
    file_path = Column(String(500))
    file_url = Column(String(500))
    file_size = Column(Integer)
    mime_type = Column(String(100))
    test_date = Column(DateTime, default=utc_now)
    emergency_visible = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utc_now)

    # Relationships
    patient = relationship("PatientProfile", back_populates="lab_results")
    doctor = relationship("DoctorProfile")
    facility = relationship("Facility")

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    appointment_id = Column(String(20), unique=True, nullable=False, index=True)
    doctor_id = Column(String(20), ForeignKey("doctor_profiles.doctor_id"), nullable=False, index=True)
    patient_id = Column(String(20), ForeignKey("patient_profiles.patient_id"), nullable=False, index=True)
    facility_id = Column(String(20), ForeignKey("facilities.hospital_id"))
    when = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False, default=30)
    reason = Column(Text)
    notes = Column(Text)
    status = Column(Enum(AppointmentStatus, name="appointment_status"), nullable=False, default=AppointmentStatus.SCHEDULED)
    completed_at = Column(DateTime)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    patient = relationship("PatientProfile", back_populates="appointments")
    doctor = relationship("DoctorProfile")
    facility = relationship("Facility")

class Allergy(Base):
    __tablename__ = "allergies"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = Column(String(20), ForeignKey("patient_profiles.patient_id", ondelete="CASCADE"), nullable=False, index=True)
    allergies = Column(String(255), nullable=False)
    # Lower-cased, trimmed copy of `allergies`; uniqueness is enforced on it
    name_key = Column(String(255), nullable=False)
    severity = Column(Enum(AllergySeverity, name="allergy_severity"), nullable=False, default=AllergySeverity.MILD)
    emergency_visible = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    patient = relationship("PatientProfile", back_populates="allergies")

    __table_args__ = (
        UniqueConstraint("patient_id", "name_key", name="uq_allergies_patient_name"),
    )

# ================================
# EMERGENCY ACCESS
# ================================

class QRCode(Base):
    __tablename__ = "qr_codes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    qr_id = Column(String(20), unique=True, nullable=False, index=True)
    patient_id = Column(String(20), ForeignKey("patient_profiles.patient_id"), nullable=False, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    qr_code_url = Column(Text)
    expire_time = Column(DateTime, nullable=False)
    scan_count = Column(Integer, nullable=False, default=0)
    max_scans = Column(Integer, nullable=False, default=999999)
    accessible_fields = Column(JSON)
    is_active = Column(Boolean, nullable=False, default=True)
    last_used = Column(DateTime)
    created_at = Column(DateTime, default=utc_now)

    # Relationships
    patient = relationship("PatientProfile", back_populates="qr_codes")
    scans = relationship("FirstResponder", back_populates="qr_code")

class FirstResponder(Base):
    __tablename__ = "first_responders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    qr_id = Column(String(20), ForeignKey("qr_codes.qr_id"), nullable=False)
    scanned_by_id = Column(String(20), ForeignKey("users.user_id"))
    patient_scanned_id = Column(String(20), ForeignKey("patient_profiles.patient_id"), nullable=False, index=True)
    ip_address = Column(String(64))
    user_agent = Column(Text)
    token_used = Column(String(64))
    accessed_data = Column(JSON)
    scanned_at = Column(DateTime, default=utc_now)

    # Relationships
    qr_code = relationship("QRCode", back_populates="scans")
    scanned_by = relationship("User")

# ================================
# NOTIFICATIONS & AUDIT
# ================================

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(NotificationType, name="notification_type"), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime)
    created_at = Column(DateTime, default=utc_now)

    # Relationships
    user = relationship("User", back_populates="notifications")

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(20), index=True)
    action_type = Column(String(50), nullable=False)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(50))
    old_values = Column(JSON)
    new_values = Column(JSON)
    description = Column(Text)
    ip_address = Column(String(64))
    user_agent = Column(Text)
    created_at = Column(DateTime, default=utc_now)

class FileStorage(Base):
    __tablename__ = "file_storage"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    file_id = Column(String(20), unique=True, nullable=False)
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(500), nullable=False)
    file_url = Column(String(500))
    file_size = Column(Integer)
    mime_type = Column(String(100))
    entity_type = Column(String(50))
    entity_id = Column(String(50))
    uploaded_by = Column(String(20))
    is_public = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utc_now)
