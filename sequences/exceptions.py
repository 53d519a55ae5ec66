class SequenceError(Exception):
    """Base error for display ID generation"""


class InvalidCategoryCode(SequenceError):
    """Raised when a category code cannot be resolved to a known category"""

    def __init__(self, category_code):
        self.category_code = category_code
        super().__init__(f"Cannot generate product ID: unknown category code '{category_code}'")
