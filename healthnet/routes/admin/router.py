from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import Optional

from healthnet.database import get_db
from healthnet.models.all_models import User, DoctorType, ProfileStatus
from healthnet.routes.admin.schemas import (
    PatientCreate, DoctorCreate, UserProfileUpdate, UserStatusUpdate,
    PasswordReset, DoctorFacilityUpdate, AssignmentCreate, FacilityCreate
)
from healthnet.schemas.clinical import AssignmentResponse, AuditLogResponse
from healthnet.schemas.user import DoctorResponse, PatientResponse, FacilityResponse, serialize_account
from healthnet.services import assignments as assignment_service
from healthnet.services import audit
from healthnet.services import facilities as facility_service
from healthnet.services import users as user_service
from healthnet.services.notifications import dispatch
from healthnet.utils.auth import require_admin
from healthnet.utils.responses import success_response

router = APIRouter(prefix="/admin", tags=["admin"])

def _audit(background_tasks: BackgroundTasks, request: Request, admin: User, action: str, entity_type: str, entity_id: str, **values):
    dispatch(
        background_tasks, audit.log_action,
        admin.user_id, action, entity_type, entity_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        **values
    )

# ================================
# PATIENTS
# ================================

@router.post("/patients", status_code=status.HTTP_201_CREATED)
async def create_patient(
    patient_data: PatientCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    user = user_service.create_patient(db, patient_data.model_dump(), created_by=current_user.user_id)
    _audit(background_tasks, request, current_user, "CREATE", "PATIENT", user.user_id,
           new_values={"name": user.name, "email": user.email})
    return success_response(PatientResponse.model_validate(user.patient_profile), "Patient created successfully")

@router.get("/patients")
async def list_patients(
    search: Optional[str] = Query(None),
    status: Optional[ProfileStatus] = Query(None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    patients = user_service.list_patients(db, search=search, status=status)
    return success_response([PatientResponse.model_validate(p) for p in patients], "Patients retrieved successfully")

@router.get("/patients/{patient_id}")
async def get_patient(
    patient_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    patient = user_service.get_patient(db, patient_id)
    assignments = assignment_service.list_assignments(db, patient_id=patient_id)
    return success_response({
        "patient": PatientResponse.model_validate(patient),
        "assignments": [AssignmentResponse.model_validate(a) for a in assignments],
    }, "Patient retrieved successfully")

# ================================
# DOCTORS
# ================================

@router.post("/doctors", status_code=status.HTTP_201_CREATED)
async def create_doctor(
    doctor_data: DoctorCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    user = user_service.create_doctor(db, doctor_data.model_dump(), created_by=current_user.user_id)
    _audit(background_tasks, request, current_user, "CREATE", "DOCTOR", user.user_id,
           new_values={"name": user.name, "email": user.email, "type": user.doctor_profile.type})
    return success_response(DoctorResponse.model_validate(user.doctor_profile), "Doctor created successfully")

@router.get("/doctors")
async def list_doctors(
    search: Optional[str] = Query(None),
    type: Optional[DoctorType] = Query(None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    doctors = user_service.list_doctors(db, search=search, doctor_type=type)
    return success_response([DoctorResponse.model_validate(d) for d in doctors], "Doctors retrieved successfully")

@router.get("/doctors/{doctor_id}")
async def get_doctor(
    doctor_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    doctor = user_service.get_doctor(db, doctor_id)
    assignments = assignment_service.list_assignments(db, doctor_id=doctor_id)
    return success_response({
        "doctor": DoctorResponse.model_validate(doctor),
        "assignments": [AssignmentResponse.model_validate(a) for a in assignments],
    }, "Doctor retrieved successfully")

@router.patch("/doctors/{doctor_id}/facility")
async def update_doctor_facility(
    doctor_id: str,
    facility_data: DoctorFacilityUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    doctor = user_service.update_doctor_facility(db, doctor_id, facility_data.facility_id)
    _audit(background_tasks, request, current_user, "UPDATE", "DOCTOR", doctor_id,
           new_values={"facility_id": facility_data.facility_id})
    return success_response(DoctorResponse.model_validate(doctor), "Doctor facility updated successfully")

# ================================
# ACCOUNT MAINTENANCE
# ================================

@router.put("/users/{user_id}")
async def update_user_profile(
    user_id: str,
    profile_data: UserProfileUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    changes = profile_data.model_dump(exclude_unset=True)
    user = user_service.update_user_profile(db, user_id, changes)
    _audit(background_tasks, request, current_user, "UPDATE", "USER", user_id, new_values=changes)
    return success_response(serialize_account(user), "User updated successfully")

@router.patch("/users/{user_id}/status")
async def update_user_status(
    user_id: str,
    status_data: UserStatusUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Suspend (INACTIVE) or reactivate (ACTIVE) a doctor or patient."""
    user = user_service.set_user_status(db, user_id, status_data.status)
    _audit(background_tasks, request, current_user, "STATUS_CHANGE", "USER", user_id,
           new_values={"status": status_data.status})
    return success_response(serialize_account(user), f"User status set to {status_data.status.value}")

@router.patch("/users/{user_id}/password")
async def reset_user_password(
    user_id: str,
    password_data: PasswordReset,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    user_service.reset_user_password(db, user_id, password_data.password)
    _audit(background_tasks, request, current_user, "PASSWORD_RESET", "USER", user_id)
    return success_response(None, "Password reset successfully")

# ================================
# ASSIGNMENTS
# ================================

@router.post("/assignments", status_code=status.HTTP_201_CREATED)
async def create_assignment(
    assignment_data: AssignmentCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    assignment = assignment_service.create_assignment(
        db, current_user, assignment_data.doctor_id, assignment_data.patient_id,
        notes=assignment_data.notes, background_tasks=background_tasks
    )
    _audit(background_tasks, request, current_user, "CREATE", "ASSIGNMENT", assignment.assignment_id,
           new_values={"doctor_id": assignment.doctor_id, "patient_id": assignment.patient_id})
    return success_response(AssignmentResponse.model_validate(assignment), "Assignment created successfully")

@router.get("/assignments")
async def list_assignments(
    active_only: bool = Query(False),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    assignments = assignment_service.list_assignments(db, active_only=active_only)
    return success_response([AssignmentResponse.model_validate(a) for a in assignments], "Assignments retrieved successfully")

@router.delete("/assignments/{assignment_id}")
async def end_assignment(
    assignment_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Ends the assignment; the record is kept with its end date."""
    assignment = assignment_service.end_assignment(db, assignment_id)
    _audit(background_tasks, request, current_user, "DELETE", "ASSIGNMENT", assignment_id)
    return success_response(AssignmentResponse.model_validate(assignment), "Assignment ended successfully")

# ================================
# FACILITIES & AUDIT
# ================================

@router.post("/facilities", status_code=status.HTTP_201_CREATED)
async def create_facility(
    facility_data: FacilityCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    facility = facility_service.create_facility(db, facility_data.model_dump())
    _audit(background_tasks, request, current_user, "CREATE", "FACILITY", facility.hospital_id,
           new_values={"name": facility.name})
    return success_response(FacilityResponse.model_validate(facility), "Facility created successfully")

@router.get("/audit-logs")
async def list_audit_logs(
    entity_type: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    logs = audit.list_audit_logs(db, entity_type=entity_type, user_id=user_id, skip=skip, limit=limit)
    return success_response([AuditLogResponse.model_validate(log) for log in logs], "Audit logs retrieved successfully")
