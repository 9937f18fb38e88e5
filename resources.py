"""
Ancillary resources: video lessons, notes and army training videos.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from database import collection, create_document, delete_document, get_documents, now, parse_object_id, to_str_id
from errors import internal_error
from schemas import ArmyVideoIn, NoteIn, VideoIn, VideoUpdate
from settings import Settings, get_settings
from storage import StorageError, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["resources"])

VIDEO_ID_LENGTH = 11


def get_media_storage(settings: Settings = Depends(get_settings)):
    return get_storage(settings)


# ---------------------------------------------------------------------------
# Video lessons
# ---------------------------------------------------------------------------

@router.get("/videos")
def list_videos():
    return get_documents("video", sort=[("subject", 1), ("class", 1)])


@router.post("/videos")
def save_video(body: VideoIn):
    if not body.videoId or len(body.videoId) != VIDEO_ID_LENGTH:
        raise HTTPException(status_code=400, detail="Invalid videoId (must be 11 chars)")
    if not body.subject or not body.classNum:
        raise HTTPException(status_code=400, detail="Subject and class required")
    try:
        previous = collection("video").find_one_and_update(
            {"subject": body.subject, "class": body.classNum},
            {
                "$set": {"videoId": body.videoId, "title": body.title or "Lesson", "updatedAt": now()},
                "$setOnInsert": {"createdAt": now()},
            },
            upsert=True,
            return_document=ReturnDocument.BEFORE,
        )
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Video for this subject and class is being saved")
    except Exception as e:
        raise internal_error(e, "Server error")
    return {"message": "Video updated" if previous else "Video saved"}


@router.put("/videos/{video_id}")
def update_video(video_id: str, body: VideoUpdate):
    oid = parse_object_id(video_id)
    if oid is None:
        raise HTTPException(status_code=404, detail="Video not found")
    changes = body.model_dump(by_alias=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="Nothing to update")
    if "videoId" in changes and len(changes["videoId"]) != VIDEO_ID_LENGTH:
        raise HTTPException(status_code=400, detail="Invalid videoId (must be 11 chars)")
    changes["updatedAt"] = now()
    try:
        updated = collection("video").find_one_and_update(
            {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="A video already exists for that subject and class")
    except Exception as e:
        raise internal_error(e, "Update failed")
    if updated is None:
        raise HTTPException(status_code=404, detail="Video not found")
    return {"message": "Video updated", "video": to_str_id(updated)}


@router.delete("/videos/{video_id}")
def delete_video(video_id: str):
    if not delete_document("video", video_id):
        raise HTTPException(status_code=404, detail="Video not found")
    return {"message": "Video deleted"}


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

@router.post("/api/save-note")
def save_note(body: NoteIn):
    if not body.title or not body.content:
        raise HTTPException(status_code=400, detail="Missing fields")
    note_id = create_document("note", body)
    return {"success": True, "message": "Note saved!", "id": note_id}


@router.get("/api/notes")
def list_notes():
    return get_documents("note", sort=[("createdAt", -1)])


# ---------------------------------------------------------------------------
# Army training videos
# ---------------------------------------------------------------------------

@router.get("/api/army-videos")
def list_army_videos():
    return get_documents("army_video", sort=[("uploadedAt", -1)])


@router.post("/save-army-video")
def save_army_video(body: ArmyVideoIn):
    if not body.title or not body.url:
        raise HTTPException(status_code=400, detail="Missing data")
    video_id = create_document("army_video", {"title": body.title, "url": body.url, "uploadedAt": now()})
    return {"success": True, "message": "Army video saved", "id": video_id}


@router.post("/upload-army-video")
def upload_army_video(
    video: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    storage=Depends(get_media_storage),
):
    if video is None:
        raise HTTPException(status_code=400, detail="No video file")
    if not title:
        raise HTTPException(status_code=400, detail="Title missing")
    try:
        url = storage.save(video.file, video.filename, "army-videos")
    except StorageError as e:
        raise internal_error(e, "Video upload failed")
    doc = {"title": title, "url": url, "uploadedAt": now()}
    doc["id"] = create_document("army_video", doc)
    doc.pop("_id", None)
    return {"success": True, "message": "Uploaded", "video": doc}
