from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional

from healthnet.database import get_db
from healthnet.models.all_models import User, DoctorProfile
from healthnet.routes.doctor.schemas import (
    DiagnosisCreate, DiagnosisUpdate, AppointmentCreate, AppointmentReschedule,
    AllergyCreate, MedicalInfoUpdate
)
from healthnet.schemas.clinical import (
    DiagnosisResponse, LabResultResponse, AppointmentResponse, AllergyResponse, AssignmentResponse
)
from healthnet.schemas.user import PatientResponse
from healthnet.services import allergies as allergy_service
from healthnet.services import appointments as appointment_service
from healthnet.services import diagnoses as diagnosis_service
from healthnet.services import doctors as doctor_service
from healthnet.services import lab_results as lab_result_service
from healthnet.services.assignments import check_assignment
from healthnet.utils.auth import require_doctor, require_medical_doctor, require_lab_technician
from healthnet.utils.responses import success_response

router = APIRouter(prefix="/doctor", tags=["doctor"])

def doctor_profile(current_user: User) -> DoctorProfile:
    return current_user.doctor_profile

# ================================
# PATIENTS
# ================================

@router.get("/patients")
async def get_assigned_patients(
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    rows = doctor_service.get_assigned_patients(db, doctor_profile(current_user))
    data = [
        {
            "assignment": AssignmentResponse.model_validate(assignment),
            "patient": PatientResponse.model_validate(assignment.patient),
            "diagnosis_count": count,
        }
        for assignment, count in rows
    ]
    return success_response(data, "Assigned patients retrieved successfully")

@router.get("/patients/{patient_id}")
async def get_patient(
    patient_id: str,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    patient = doctor_service.get_patient_for_doctor(db, doctor_profile(current_user), patient_id)
    return success_response(PatientResponse.model_validate(patient), "Patient retrieved successfully")

@router.get("/patients/{patient_id}/records")
async def get_patient_records(
    patient_id: str,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    records = doctor_service.get_patient_records(db, doctor_profile(current_user), patient_id)
    return success_response({
        "patient": PatientResponse.model_validate(records["patient"]),
        "diagnoses": [DiagnosisResponse.model_validate(d) for d in records["diagnoses"]],
        "lab_results": [LabResultResponse.model_validate(r) for r in records["lab_results"]],
    }, "Patient records retrieved successfully")

@router.get("/patients/{patient_id}/appointments")
async def get_patient_appointments(
    patient_id: str,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    appointments = appointment_service.list_patient_appointments_for_doctor(db, doctor_profile(current_user), patient_id)
    return success_response([AppointmentResponse.model_validate(a) for a in appointments], "Appointments retrieved successfully")

@router.post("/patients/{patient_id}/allergies", status_code=status.HTTP_201_CREATED)
async def add_allergy(
    patient_id: str,
    allergy_data: AllergyCreate,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    check_assignment(db, doctor_profile(current_user).doctor_id, patient_id)
    allergy = allergy_service.add_allergy(db, patient_id, allergy_data.allergies, allergy_data.severity)
    return success_response(AllergyResponse.model_validate(allergy), "Allergy recorded successfully")

@router.get("/patients/{patient_id}/allergies")
async def get_patient_allergies(
    patient_id: str,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    check_assignment(db, doctor_profile(current_user).doctor_id, patient_id)
    allergies = allergy_service.list_allergies(db, patient_id)
    return success_response([AllergyResponse.model_validate(a) for a in allergies], "Allergies retrieved successfully")

@router.patch("/patients/{patient_id}/medical-info")
async def update_patient_medical_info(
    patient_id: str,
    medical_data: MedicalInfoUpdate,
    current_user: User = Depends(require_medical_doctor),
    db: Session = Depends(get_db)
):
    patient = doctor_service.update_patient_medical_info(
        db, doctor_profile(current_user), patient_id, medical_data.model_dump(exclude_unset=True)
    )
    return success_response(PatientResponse.model_validate(patient), "Medical information updated successfully")

# ================================
# DIAGNOSES
# ================================

@router.get("/diagnoses")
async def get_all_diagnoses(
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    diagnoses = diagnosis_service.list_diagnoses_for_doctor(db, doctor_profile(current_user))
    return success_response([DiagnosisResponse.model_validate(d) for d in diagnoses], "Diagnoses retrieved successfully")

@router.get("/patients/{patient_id}/diagnoses")
async def get_patient_diagnoses(
    patient_id: str,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    check_assignment(db, doctor_profile(current_user).doctor_id, patient_id)
    diagnoses = diagnosis_service.list_patient_diagnoses(db, patient_id)
    return success_response([DiagnosisResponse.model_validate(d) for d in diagnoses], "Diagnoses retrieved successfully")

@router.post("/patients/{patient_id}/diagnoses", status_code=status.HTTP_201_CREATED)
async def create_diagnosis(
    patient_id: str,
    diagnosis_data: DiagnosisCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_medical_doctor),
    db: Session = Depends(get_db)
):
    diagnosis = diagnosis_service.create_diagnosis(
        db, doctor_profile(current_user), patient_id, diagnosis_data.model_dump(exclude_unset=True),
        background_tasks=background_tasks
    )
    return success_response(DiagnosisResponse.model_validate(diagnosis), "Diagnosis created successfully")

@router.get("/diagnoses/{diagnosis_id}")
async def get_diagnosis(
    diagnosis_id: str,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    diagnosis = diagnosis_service.get_diagnosis_for_doctor(db, doctor_profile(current_user), diagnosis_id)
    return success_response(DiagnosisResponse.model_validate(diagnosis), "Diagnosis retrieved successfully")

@router.patch("/diagnoses/{diagnosis_id}")
async def update_diagnosis(
    diagnosis_id: str,
    diagnosis_data: DiagnosisUpdate,
    current_user: User = Depends(require_medical_doctor),
    db: Session = Depends(get_db)
):
    diagnosis = diagnosis_service.update_diagnosis(
        db, doctor_profile(current_user), diagnosis_id, diagnosis_data.model_dump(exclude_unset=True)
    )
    return success_response(DiagnosisResponse.model_validate(diagnosis), "Diagnosis updated successfully")

@router.patch("/diagnoses/{diagnosis_id}/complete")
async def complete_diagnosis(
    diagnosis_id: str,
    current_user: User = Depends(require_medical_doctor),
    db: Session = Depends(get_db)
):
    diagnosis = diagnosis_service.complete_diagnosis(db, doctor_profile(current_user), diagnosis_id)
    return success_response(DiagnosisResponse.model_validate(diagnosis), "Diagnosis completed successfully")

# ================================
# LAB RESULTS
# ================================

@router.get("/lab-results")
async def get_all_lab_results(
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    results = lab_result_service.list_lab_results_for_doctor(db, doctor_profile(current_user))
    return success_response([LabResultResponse.model_validate(r) for r in results], "Lab results retrieved successfully")

@router.get("/patients/{patient_id}/lab-results")
async def get_patient_lab_results(
    patient_id: str,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    check_assignment(db, doctor_profile(current_user).doctor_id, patient_id)
    results = lab_result_service.list_patient_lab_results(db, patient_id)
    return success_response([LabResultResponse.model_validate(r) for r in results], "Lab results retrieved successfully")

@router.post("/patients/{patient_id}/lab-results", status_code=status.HTTP_201_CREATED)
async def create_lab_result(
    patient_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    test_name: Optional[str] = Form(None),
    result_value: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    findings: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    test_date: Optional[datetime] = Form(None),
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(require_lab_technician),
    db: Session = Depends(get_db)
):
    """Multipart form: lab result fields plus an optional `file`."""
    lab_result = lab_result_service.create_lab_result(
        db, doctor_profile(current_user), patient_id,
        {
            "test_name": test_name,
            "result_value": result_value,
            "status": status,
            "type": type,
            "findings": findings,
            "notes": notes,
            "test_date": test_date,
        },
        upload=file,
        background_tasks=background_tasks,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return success_response(LabResultResponse.model_validate(lab_result), "Lab result uploaded successfully")

@router.get("/lab-results/{lab_id}")
async def get_lab_result(
    lab_id: str,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    lab_result = lab_result_service.get_lab_result_for_doctor(db, doctor_profile(current_user), lab_id)
    return success_response(LabResultResponse.model_validate(lab_result), "Lab result retrieved successfully")

# ================================
# APPOINTMENTS
# ================================

@router.get("/appointments")
async def get_my_appointments(
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    appointments = appointment_service.list_doctor_appointments(db, doctor_profile(current_user))
    return success_response([AppointmentResponse.model_validate(a) for a in appointments], "Appointments retrieved successfully")

@router.get("/appointments/{appointment_id}")
async def get_appointment(
    appointment_id: str,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    appointment = appointment_service.get_appointment_for_doctor(db, doctor_profile(current_user), appointment_id)
    return success_response(AppointmentResponse.model_validate(appointment), "Appointment retrieved successfully")

@router.post("/appointments", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_data: AppointmentCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    appointment = appointment_service.create_appointment(
        db, doctor_profile(current_user), appointment_data.model_dump(), background_tasks=background_tasks
    )
    return success_response(AppointmentResponse.model_validate(appointment), "Appointment scheduled successfully")

@router.patch("/appointments/{appointment_id}/reschedule")
async def reschedule_appointment(
    appointment_id: str,
    reschedule_data: AppointmentReschedule,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    appointment = appointment_service.reschedule_appointment(
        db, doctor_profile(current_user), appointment_id, reschedule_data.when, background_tasks=background_tasks
    )
    return success_response(AppointmentResponse.model_validate(appointment), "Appointment rescheduled successfully")

@router.patch("/appointments/{appointment_id}/complete")
async def complete_appointment(
    appointment_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_doctor),
    db: Session = Depends(get_db)
):
    appointment = appointment_service.complete_appointment(
        db, doctor_profile(current_user), appointment_id, background_tasks=background_tasks
    )
    return success_response(AppointmentResponse.model_validate(appointment), "Appointment completed successfully")
