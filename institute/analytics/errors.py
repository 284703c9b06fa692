class InvalidExamConfiguration(ValueError):
    """Raised when an exam's total marks cannot be used as a divisor"""

    def __init__(self, total_marks, exam_id=None):
        self.total_marks = total_marks
        self.exam_id = exam_id
        target = f"exam {exam_id}" if exam_id else "exam"
        super().__init__(f"Invalid exam configuration: {target} has total_marks={total_marks}")
