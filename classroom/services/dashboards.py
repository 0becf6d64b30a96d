"""Queries feeding the reporting functions for dashboards and admin analytics."""
from typing import Dict, List

from sqlalchemy.orm import Session

from classroom.core.config.settings import get_settings
from classroom.crud.trusted import list_my_classes
from classroom.models.assignment import Assignment
from classroom.models.classroom import Classroom, Enrollment
from classroom.models.profile import Profile, RoleType
from classroom.models.submission import Submission
from classroom.services import reporting
from classroom.services.capabilities import Viewer


def teacher_dashboard(db: Session, viewer: Viewer) -> Dict:
    classes = list_my_classes(db, viewer)
    class_ids = [c["id"] for c in classes]
    assignment_ids = []
    if class_ids:
        assignment_ids = [
            row[0] for row in db.query(Assignment.id).filter(Assignment.class_id.in_(class_ids)).all()
        ]
    submission_count = 0
    pending_count = 0
    if assignment_ids:
        submission_count = db.query(Submission).filter(Submission.assignment_id.in_(assignment_ids)).count()
        pending_count = db.query(Submission).filter(
            Submission.assignment_id.in_(assignment_ids),
            Submission.grade.is_(None),
        ).count()
    return {
        "classes": len(classes),
        "assignments": len(assignment_ids),
        "submissions": submission_count,
        "pending_reviews": pending_count,
        "students": sum(c["enrollment_count"] for c in classes),
        "recent_classes": classes[:3],
    }


def student_dashboard(db: Session, viewer: Viewer) -> Dict:
    classes = list_my_classes(db, viewer)
    class_ids = [c["id"] for c in classes]
    assignment_count = 0
    if class_ids:
        assignment_count = db.query(Assignment).filter(Assignment.class_id.in_(class_ids)).count()
    submission_count = db.query(Submission).filter(Submission.student_id == viewer.profile_id).count()
    return {
        "classes": len(classes),
        "assignments": assignment_count,
        "submissions": submission_count,
        "pending_reviews": 0,
        "students": 0,
        "recent_classes": classes[:3],
    }


def teacher_at_risk(db: Session, viewer: Viewer, threshold: int = None) -> List[Dict]:
    """At-risk students counted over the teacher's own classes only."""
    if threshold is None:
        threshold = get_settings().AT_RISK_THRESHOLD
    class_ids = [
        row[0] for row in db.query(Classroom.id).filter(Classroom.teacher_id == viewer.profile_id).all()
    ]
    if not class_ids:
        return []

    enrollments = db.query(Enrollment.student_id, Enrollment.class_id).filter(
        Enrollment.class_id.in_(class_ids)
    ).all()
    assignments = db.query(Assignment.id, Assignment.class_id).filter(
        Assignment.class_id.in_(class_ids)
    ).all()
    assignment_ids = [a[0] for a in assignments]
    submissions = []
    if assignment_ids:
        submissions = db.query(Submission.student_id, Submission.assignment_id).filter(
            Submission.assignment_id.in_(assignment_ids)
        ).all()

    flagged = reporting.at_risk_students(enrollments, assignments, submissions, threshold)
    if not flagged:
        return []
    profiles = {
        p.id: p for p in db.query(Profile).filter(Profile.id.in_([row["student_id"] for row in flagged])).all()
    }
    for row in flagged:
        profile = profiles.get(row["student_id"])
        row["full_name"] = profile.full_name if profile else None
        row["email"] = profile.email if profile else None
    return flagged


def admin_overview(db: Session) -> Dict:
    roles = reporting.role_counts(role.value for (role,) in db.query(Profile.role).all())
    total_classes = db.query(Classroom).count()
    total_assignments = db.query(Assignment).count()
    total_submissions = db.query(Submission).count()
    graded = db.query(Submission).filter(Submission.grade.isnot(None)).count()
    return {
        "total_users": roles["total"],
        "total_students": roles["student"],
        "total_teachers": roles["teacher"],
        "total_admins": roles["admin"],
        "total_classes": total_classes,
        "total_assignments": total_assignments,
        "total_submissions": total_submissions,
        "graded_submissions": graded,
        "avg_submissions_per_assignment": reporting.safe_ratio(total_submissions, total_assignments),
        "grading_rate_percent": reporting.safe_ratio(graded * 100, total_submissions),
        "avg_students_per_class": reporting.safe_ratio(roles["student"], total_classes),
    }


def admin_analytics(db: Session) -> Dict:
    total_users = db.query(Profile).count()
    total_classes = db.query(Classroom).count()
    total_assignments = db.query(Assignment).count()
    total_submissions = db.query(Submission).count()

    graded_rows = (
        db.query(Submission.grade, Assignment.points)
        .join(Assignment, Assignment.id == Submission.assignment_id)
        .filter(Submission.grade.isnot(None))
        .all()
    )
    teachers = db.query(Profile.id, Profile.full_name).filter(Profile.role == RoleType.TEACHER).all()
    classes = db.query(Classroom.id, Classroom.teacher_id).all()
    enrollments = db.query(Enrollment.student_id, Enrollment.class_id).all()

    return {
        "total_users": total_users,
        "total_classes": total_classes,
        "total_assignments": total_assignments,
        "total_submissions": total_submissions,
        "grade_distribution": reporting.grade_distribution(graded_rows),
        "top_teachers": reporting.top_teachers(teachers, classes, enrollments),
        "avg_submissions_per_class": reporting.safe_ratio(total_submissions, total_classes),
        "avg_submissions_per_assignment": reporting.safe_ratio(total_submissions, total_assignments),
        "avg_assignments_per_class": reporting.safe_ratio(total_assignments, total_classes),
    }


def teacher_stats(db: Session) -> List[Dict]:
    """Every teacher with class count and distinct student count (admin teachers page)."""
    teachers = db.query(Profile).filter(Profile.role == RoleType.TEACHER).order_by(Profile.created_at.desc()).all()
    classes = db.query(Classroom.id, Classroom.teacher_id).all()
    enrollments = db.query(Enrollment.student_id, Enrollment.class_id).all()
    ranked = {
        row["teacher_id"]: row
        for row in reporting.top_teachers(
            [(t.id, t.full_name) for t in teachers], classes, enrollments, limit=len(teachers)
        )
    }
    return [
        {
            "id": t.id,
            "email": t.email,
            "full_name": t.full_name,
            "created_at": t.created_at,
            "class_count": ranked[t.id]["class_count"],
            "student_count": ranked[t.id]["student_count"],
        }
        for t in teachers
    ]


def student_stats(db: Session) -> List[Dict]:
    """Every student with enrollment and submission counts (admin students page)."""
    students = db.query(Profile).filter(Profile.role == RoleType.STUDENT).order_by(Profile.created_at.desc()).all()
    class_counts = {}
    for (student_id,) in db.query(Enrollment.student_id).all():
        class_counts[student_id] = class_counts.get(student_id, 0) + 1
    submission_counts = {}
    for (student_id,) in db.query(Submission.student_id).all():
        submission_counts[student_id] = submission_counts.get(student_id, 0) + 1
    return [
        {
            "id": s.id,
            "email": s.email,
            "full_name": s.full_name,
            "created_at": s.created_at,
            "class_count": class_counts.get(s.id, 0),
            "submission_count": submission_counts.get(s.id, 0),
        }
        for s in students
    ]
