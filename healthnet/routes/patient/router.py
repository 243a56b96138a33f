from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID

from healthnet.database import get_db
from healthnet.models.all_models import User, PatientProfile
from healthnet.routes.patient.schemas import (
    VisibilityUpdate, MedicalInfoVisibilityUpdate, PatientAllergyCreate,
    EmergencyInfoUpdate, PatientProfileUpdate
)
from healthnet.schemas.clinical import (
    DiagnosisResponse, LabResultResponse, AppointmentResponse, AllergyResponse, EmergencyInfoResponse
)
from healthnet.schemas.user import DoctorResponse, PatientResponse, serialize_account
from healthnet.services import allergies as allergy_service
from healthnet.services import appointments as appointment_service
from healthnet.services import diagnoses as diagnosis_service
from healthnet.services import emergency_info as emergency_info_service
from healthnet.services import lab_results as lab_result_service
from healthnet.services import patients as patient_service
from healthnet.services import users as user_service
from healthnet.utils.auth import require_patient
from healthnet.utils.responses import success_response

router = APIRouter(prefix="/patient", tags=["patient"])

def patient_profile(current_user: User) -> PatientProfile:
    return current_user.patient_profile

def visibility_message(subject: str, visible: bool) -> str:
    return f"{subject} visibility {'enabled' if visible else 'disabled'}"

# ================================
# RECORDS
# ================================

@router.get("/diagnoses")
async def get_my_diagnoses(
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    diagnoses = diagnosis_service.list_patient_diagnoses(db, patient_profile(current_user).patient_id)
    return success_response([DiagnosisResponse.model_validate(d) for d in diagnoses], "Diagnoses retrieved successfully")

@router.get("/diagnoses/{diagnosis_id}")
async def get_my_diagnosis(
    diagnosis_id: str,
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    diagnosis = diagnosis_service.get_patient_diagnosis(db, patient_profile(current_user).patient_id, diagnosis_id)
    return success_response(DiagnosisResponse.model_validate(diagnosis), "Diagnosis retrieved successfully")

@router.patch("/diagnoses/{diagnosis_id}/visibility")
async def toggle_diagnosis_visibility(
    diagnosis_id: str,
    visibility: VisibilityUpdate,
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    diagnosis = diagnosis_service.set_diagnosis_visibility(
        db, patient_profile(current_user).patient_id, diagnosis_id, visibility.visible
    )
    return success_response(DiagnosisResponse.model_validate(diagnosis), visibility_message("Diagnosis", visibility.visible))

@router.get("/lab-results")
async def get_my_lab_results(
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    results = lab_result_service.list_patient_lab_results(db, patient_profile(current_user).patient_id)
    return success_response([LabResultResponse.model_validate(r) for r in results], "Lab results retrieved successfully")

@router.get("/lab-results/{lab_id}")
async def get_my_lab_result(
    lab_id: str,
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    lab_result = lab_result_service.get_patient_lab_result(db, patient_profile(current_user).patient_id, lab_id)
    return success_response(LabResultResponse.model_validate(lab_result), "Lab result retrieved successfully")

@router.patch("/lab-results/{lab_id}/visibility")
async def toggle_lab_result_visibility(
    lab_id: str,
    visibility: VisibilityUpdate,
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    lab_result = lab_result_service.set_lab_result_visibility(
        db, patient_profile(current_user).patient_id, lab_id, visibility.visible
    )
    return success_response(LabResultResponse.model_validate(lab_result), visibility_message("Lab result", visibility.visible))

@router.patch("/medical-info/visibility")
async def toggle_medical_info_visibility(
    visibility: MedicalInfoVisibilityUpdate,
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    patient = patient_service.set_medical_info_visibility(db, patient_profile(current_user), visibility.field, visibility.visible)
    return success_response(
        PatientResponse.model_validate(patient),
        visibility_message(f"Medical info {visibility.field}", visibility.visible)
    )

# ================================
# EMERGENCY INFO
# ================================

@router.get("/emergency-info")
async def get_emergency_info(
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    info = emergency_info_service.get_emergency_info(db, patient_profile(current_user))
    return success_response(EmergencyInfoResponse.model_validate(info), "Emergency info retrieved successfully")

@router.put("/emergency-info")
@router.post("/emergency-info")
async def update_emergency_info(
    info_data: EmergencyInfoUpdate,
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    info = emergency_info_service.update_emergency_info(
        db, patient_profile(current_user), info_data.model_dump(exclude_unset=True)
    )
    return success_response(EmergencyInfoResponse.model_validate(info), "Emergency info updated successfully")

# ================================
# ALLERGIES
# ================================

@router.get("/allergies")
async def get_my_allergies(
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    allergies = allergy_service.list_allergies(db, patient_profile(current_user).patient_id)
    return success_response([AllergyResponse.model_validate(a) for a in allergies], "Allergies retrieved successfully")

@router.post("/allergies", status_code=status.HTTP_201_CREATED)
async def add_allergy(
    allergy_data: PatientAllergyCreate,
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    allergy = allergy_service.add_allergy(
        db, patient_profile(current_user).patient_id, allergy_data.allergy, allergy_data.severity
    )
    return success_response(AllergyResponse.model_validate(allergy), "Allergy added successfully")

@router.patch("/allergies/{allergy_id}/visibility")
async def toggle_allergy_visibility(
    allergy_id: UUID,
    visibility: VisibilityUpdate,
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    allergy = allergy_service.set_allergy_visibility(
        db, patient_profile(current_user).patient_id, allergy_id, visibility.visible
    )
    return success_response(AllergyResponse.model_validate(allergy), visibility_message("Allergy", visibility.visible))

@router.delete("/allergies/{allergy_id}")
async def delete_allergy(
    allergy_id: UUID,
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    allergy_service.delete_allergy(db, patient_profile(current_user).patient_id, allergy_id)
    return success_response(None, "Allergy deleted successfully")

# ================================
# DOCTORS & APPOINTMENTS
# ================================

@router.get("/doctors")
async def get_assigned_doctors(
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    doctors = patient_service.list_assigned_doctors(db, patient_profile(current_user))
    return success_response([DoctorResponse.model_validate(d) for d in doctors], "Assigned doctors retrieved successfully")

@router.get("/doctors/{doctor_id}")
async def get_assigned_doctor(
    doctor_id: str,
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    doctor = patient_service.get_assigned_doctor(db, patient_profile(current_user), doctor_id)
    return success_response(DoctorResponse.model_validate(doctor), "Doctor retrieved successfully")

@router.get("/appointments")
async def get_my_appointments(
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    appointments = appointment_service.list_patient_appointments(db, patient_profile(current_user).patient_id)
    return success_response([AppointmentResponse.model_validate(a) for a in appointments], "Appointments retrieved successfully")

@router.get("/appointments/{appointment_id}")
async def get_my_appointment(
    appointment_id: str,
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    appointment = appointment_service.get_patient_appointment(db, patient_profile(current_user).patient_id, appointment_id)
    return success_response(AppointmentResponse.model_validate(appointment), "Appointment retrieved successfully")

# ================================
# PROFILE
# ================================

@router.patch("/profile")
async def update_profile(
    profile_data: PatientProfileUpdate,
    current_user: User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    user = user_service.update_patient_contact(db, current_user, profile_data.model_dump(exclude_unset=True))
    return success_response(serialize_account(user), "Profile updated successfully")
