"""
MongoDB utilities for session attendance and course enrollment

Collections:
- session_attendance: Latest attendance payload per class session
- users: Platform users (email -> profile_id)
- enroll_course: Student enrollments per course
"""

from pymongo import MongoClient, DESCENDING
from pymongo.errors import ConnectionFailure
from datetime import datetime
from typing import Optional, Dict, Any
from utils.logger import log_info, log_error, log_exception
import os


class MongoDBManager:
    """
    MongoDB Manager for attendance records and enrollment lookups
    """

    def __init__(self, mongodb_uri: str, database_name: str = "classroom", client=None):
        """
        Initialize MongoDB Manager

        Args:
            mongodb_uri: MongoDB connection URI
            database_name: Name of the database (default: "classroom")
            client: Pre-built client to use instead of connecting to mongodb_uri
        """
        try:
            if client is None:
                client = MongoClient(mongodb_uri, serverSelectionTimeoutMS=5000)
                # Test connection
                client.admin.command('ping')
            self.client = client
            self.db = self.client[database_name]

            # Collections
            self.attendance_collection = self.db["session_attendance"]
            self.users_collection = self.db["users"]
            self.enrollments_collection = self.db["enroll_course"]

            self._create_indexes()

            log_info(f"MongoDB Manager initialized successfully with database: {database_name}")
        except ConnectionFailure as e:
            log_error(f"Failed to connect to MongoDB: {str(e)}")
            raise
        except Exception as e:
            log_exception(f"Error initializing MongoDB Manager: {str(e)}")
            raise

    def _create_indexes(self):
        """Create indexes for collections"""
        try:
            self.attendance_collection.create_index("session_id", unique=True)
            self.attendance_collection.create_index("created_at")
            self.users_collection.create_index("email")
            self.enrollments_collection.create_index([("student_id", 1), ("course_id", 1)])

            log_info("MongoDB indexes created successfully")
        except Exception as e:
            log_error(f"Error creating indexes: {str(e)}")

    # ==================== Attendance Methods ====================

    def save_session_attendance(self, payload: Dict[str, Any]) -> None:
        """
        Persist a session attendance payload.

        A session keeps a single record that is replaced with the latest
        payload; the client is responsible for sending correct joinedAt /
        leftAt values, nothing is merged server-side.

        Args:
            payload: Attendance payload with sessionId and roomName
        """
        payload = payload or {}
        session_id = payload.get("sessionId")
        room_name = payload.get("roomName")

        if not session_id or not room_name:
            raise ValueError("sessionId and roomName are required")

        data = {
            "sessionId": session_id,
            "roomName": room_name,
            "courseId": payload.get("courseId"),
            "courseName": payload.get("courseName"),
            "participants": payload.get("participants") or [],
        }

        now = datetime.utcnow()
        self.attendance_collection.update_one(
            {"session_id": session_id},
            {
                "$set": {
                    "room_name": room_name,
                    "course_id": data["courseId"],
                    "course_name": data["courseName"],
                    "data": data,
                    "updated_at": now,
                },
                "$setOnInsert": {"created_at": now},
            },
            upsert=True
        )
        participants = data["participants"]
        if isinstance(participants, list):
            log_info(f"Saved attendance for session: {session_id} ({len(participants)} participants)")
        else:
            log_info(f"Saved attendance for session: {session_id}")

    def get_session_attendance(self, session_id: str) -> Optional[Dict[str, Any]]:
        """
        Get the latest attendance payload for a session

        Args:
            session_id: Session identifier

        Returns:
            Attendance payload or None if not found
        """
        if not session_id:
            raise ValueError("sessionId is required")

        record = self.attendance_collection.find_one(
            {"session_id": session_id},
            sort=[("created_at", DESCENDING)]
        )
        if not record:
            return None
        return record.get("data") or None

    # ==================== Enrollment Methods ====================

    def check_student_enrollment(self, email: str, course_id: str) -> bool:
        """
        Check whether the user with this email is enrolled in a course

        Args:
            email: Student email
            course_id: Course identifier

        Returns:
            True if an active enrollment exists
        """
        user = self.users_collection.find_one({"email": email})
        if not user:
            log_info(f"No user found with email: {email}")
            return False

        user_id = user.get("profile_id")
        log_info(f"Found userId: {user_id} for email: {email}")

        enrollment = self.enrollments_collection.find_one({
            "student_id": user_id,
            "course_id": course_id,
            "enrolled": True
        })
        return enrollment is not None

    # ==================== Connection Management ====================

    def close(self):
        """Close MongoDB connection"""
        try:
            self.client.close()
            log_info("MongoDB connection closed")
        except Exception as e:
            log_error(f"Error closing MongoDB connection: {str(e)}")

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()


# Singleton instance
_mongodb_manager = None


def get_mongodb_manager(mongodb_uri: Optional[str] = None, database_name: str = "classroom") -> MongoDBManager:
    """
    Get or create MongoDB Manager singleton instance

    Args:
        mongodb_uri: MongoDB connection URI (required for first call)
        database_name: Database name (default: "classroom")

    Returns:
        MongoDBManager instance
    """
    global _mongodb_manager

    if _mongodb_manager is None:
        if mongodb_uri is None:
            # Try to get from environment
            mongodb_uri = os.getenv("MONGODB_URI")
            if mongodb_uri is None:
                raise ValueError("MongoDB URI must be provided or set in MONGODB_URI environment variable")

        _mongodb_manager = MongoDBManager(mongodb_uri, database_name)

    return _mongodb_manager
