"""
Read-side aggregation over rows that have already been fetched.

Nothing here touches the database or mutates its inputs; every function
accepts empty inputs and answers with zeros or empty lists.
"""
import math
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

GRADE_BINS = [
    "0-10%",
    "11-20%",
    "21-30%",
    "31-40%",
    "41-50%",
    "51-60%",
    "61-70%",
    "71-80%",
    "81-90%",
    "91-100%",
]


def grade_percentage(grade: float, points: float) -> Optional[float]:
    if grade is None or not points or points <= 0:
        return None
    return grade / points * 100


def grade_bin_index(percentage: float) -> int:
    """
    0-10 inclusive is bin 0; above that each bin covers (10k, 10k+10].
    Values outside 0..100 are clamped into the first or last bin.
    """
    if percentage <= 10:
        return 0
    return min(math.ceil(percentage / 10) - 1, len(GRADE_BINS) - 1)


def grade_distribution(graded: Iterable[Tuple[float, float]]) -> List[Dict]:
    """
    Count graded work per 10-point percentage bin.

    Args:
        graded: (grade, points) pairs; pairs with no grade or no positive points are skipped

    Returns:
        Ten {"range", "count"} entries in bin order
    """
    counts = [0] * len(GRADE_BINS)
    for grade, points in graded:
        percentage = grade_percentage(grade, points)
        if percentage is None:
            continue
        counts[grade_bin_index(percentage)] += 1
    return [{"range": label, "count": count} for label, count in zip(GRADE_BINS, counts)]


def at_risk_students(
    enrollments: Iterable[Tuple[int, int]],
    assignments: Iterable[Tuple[int, int]],
    submissions: Iterable[Tuple[int, int]],
    threshold: int = 3,
) -> List[Dict]:
    """
    Students whose missing-work count reaches the threshold.

    Args:
        enrollments: (student_id, class_id) pairs
        assignments: (assignment_id, class_id) pairs
        submissions: (student_id, assignment_id) pairs
        threshold: minimum number of missing submissions to flag

    Returns:
        {"student_id", "assigned", "submitted", "missing"} per flagged student,
        most missing first
    """
    assignments_by_class = defaultdict(set)
    for assignment_id, class_id in assignments:
        assignments_by_class[class_id].add(assignment_id)

    classes_by_student = defaultdict(set)
    for student_id, class_id in enrollments:
        classes_by_student[student_id].add(class_id)

    submitted_by_student = defaultdict(set)
    for student_id, assignment_id in submissions:
        submitted_by_student[student_id].add(assignment_id)

    flagged = []
    for student_id, class_ids in classes_by_student.items():
        assigned = set()
        for class_id in class_ids:
            assigned |= assignments_by_class.get(class_id, set())
        submitted = submitted_by_student.get(student_id, set()) & assigned
        missing = len(assigned) - len(submitted)
        if missing >= threshold:
            flagged.append({
                "student_id": student_id,
                "assigned": len(assigned),
                "submitted": len(submitted),
                "missing": missing,
            })
    flagged.sort(key=lambda row: (-row["missing"], row["student_id"]))
    return flagged


def top_teachers(
    teachers: Iterable[Tuple[int, str]],
    classes: Iterable[Tuple[int, int]],
    enrollments: Iterable[Tuple[int, int]],
    limit: int = 5,
) -> List[Dict]:
    """
    Rank teachers by distinct students taught.

    Args:
        teachers: (teacher_id, name) pairs
        classes: (class_id, teacher_id) pairs
        enrollments: (student_id, class_id) pairs
    """
    teacher_of_class = dict(classes)
    class_count = defaultdict(int)
    for _class_id, teacher_id in teacher_of_class.items():
        class_count[teacher_id] += 1

    students = defaultdict(set)
    for student_id, class_id in enrollments:
        teacher_id = teacher_of_class.get(class_id)
        if teacher_id is not None:
            students[teacher_id].add(student_id)

    ranked = [
        {
            "teacher_id": teacher_id,
            "name": name,
            "class_count": class_count.get(teacher_id, 0),
            "student_count": len(students.get(teacher_id, ())),
        }
        for teacher_id, name in teachers
    ]
    # Stable sort keeps input order for ties
    ranked.sort(key=lambda row: row["student_count"], reverse=True)
    return ranked[:limit]


def role_counts(roles: Iterable[str]) -> Dict[str, int]:
    counts = {"student": 0, "teacher": 0, "admin": 0}
    total = 0
    for role in roles:
        total += 1
        counts[role] = counts.get(role, 0) + 1
    counts["total"] = total
    return counts


def safe_ratio(numerator: float, denominator: float, digits: int = 1) -> float:
    if not denominator:
        return 0.0
    return round(numerator / denominator, digits)


def score_display(grade: Optional[int], points: int) -> Optional[Dict]:
    """"85/100" plus the rounded percentage, or None while ungraded."""
    if grade is None:
        return None
    percentage = grade_percentage(grade, points)
    return {
        "score": f"{grade}/{points}",
        "percentage": round(percentage) if percentage is not None else None,
    }
