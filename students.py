import logging

from fastapi import APIRouter, Depends, HTTPException
from pymongo.errors import DuplicateKeyError

from auth import create_access_token, hash_password, verify_password
from database import collection, create_document, delete_document, get_documents
from errors import internal_error
from schemas import StudentCreate, StudentLogin
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["students"])


@router.post("/students")
def register_student(body: StudentCreate, settings: Settings = Depends(get_settings)):
    if not body.name or not body.mobile or not body.password:
        raise HTTPException(status_code=400, detail="Missing fields")
    mobile = body.mobile.strip()
    if collection("student").find_one({"mobile": mobile}):
        raise HTTPException(status_code=409, detail="Mobile already registered")
    try:
        create_document("student", {
            "name": body.name.strip(),
            "roll": body.roll,
            "mobile": mobile,
            "password": hash_password(body.password, settings.BCRYPT_ROUNDS),
        })
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Mobile already registered")
    except Exception as e:
        raise internal_error(e, "Server error")
    logger.info("Registered student %s", mobile)
    return {"message": "Student added"}


@router.post("/student-login")
def student_login(body: StudentLogin, settings: Settings = Depends(get_settings)):
    if not body.mobile or not body.password:
        raise HTTPException(status_code=400, detail="Mobile & password required")
    student = collection("student").find_one({"mobile": body.mobile.strip()})
    # Same answer for unknown mobile and wrong password.
    if not student or not verify_password(body.password, student.get("password")):
        logger.warning("Failed login for %s", body.mobile)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = create_access_token(student["mobile"], student.get("name"), settings)
    return {"token": token, "name": student.get("name"), "mobile": student["mobile"]}


@router.get("/students")
def list_students():
    return get_documents("student", projection={"password": 0}, sort=[("name", 1)])


@router.delete("/students/{student_id}")
def delete_student(student_id: str):
    if not delete_document("student", student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    return {"message": "Deleted"}
