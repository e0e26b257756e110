"""Fixed interview question catalog.

Registration seeds new records from it and the live interview hands out
questions from it, so both must read ``interview_questions()``. Bump
``CATALOG_VERSION`` whenever the wording or order changes.
"""

CATALOG_VERSION = "2024-06-01"

_QUESTIONS = (
    "Hello, Thank you for joining us today. School Professionals staffs substitute teachers "
    "in Charter, Private, and Independent schools, as well as NYC's Pre-K for All (UPK) program. "
    "We work with schools across all five boroughs, offering both short- and long-term "
    "assignments, and you choose which fit your schedule. The only requirement is working at "
    "least four days per month. This is a great way to gain classroom experience while working "
    "at different schools. Are you interested in moving forward?",
    "How did you hear about us?",
)


def interview_questions() -> tuple[str, ...]:
    return _QUESTIONS
