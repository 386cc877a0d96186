"""
strength.py - Password strength scoring
"""
import re
from typing import List, NamedTuple


class StrengthResult(NamedTuple):
    score: int  # 0-100
    feedback: List[str]

    @property
    def label(self) -> str:
        """Human-readable strength level"""
        if self.score >= 80:
            return "Strong"
        elif self.score >= 60:
            return "Good"
        elif self.score >= 40:
            return "Weak"
        return "Very Weak"


def calculate_password_strength(password: str) -> StrengthResult:
    """
    Score a password from 0 to 100 and say what is missing.

    Deterministic: length earns up to 35 points, each character class
    (lowercase, uppercase, digits, symbols) earns 15 or 20.
    """
    score = 0
    feedback = []

    # Length scoring
    if len(password) >= 12:
        score += 25
    elif len(password) >= 8:
        score += 15
    else:
        feedback.append("Use at least 12 characters")

    # Character variety
    if re.search(r'[a-z]', password):
        score += 15
    else:
        feedback.append("Include lowercase letters")

    if re.search(r'[A-Z]', password):
        score += 15
    else:
        feedback.append("Include uppercase letters")

    if re.search(r'[0-9]', password):
        score += 15
    else:
        feedback.append("Include numbers")

    if re.search(r'[^A-Za-z0-9]', password):
        score += 20
    else:
        feedback.append("Include special characters")

    # Complexity bonus
    if len(password) >= 16:
        score += 10

    return StrengthResult(min(score, 100), feedback)


def format_strength_bar(score: int, width: int = 20) -> str:
    """Create a visual strength bar"""
    filled = int((score / 100) * width)
    bar = '█' * filled + '░' * (width - filled)

    # Color codes (for terminal)
    if score >= 80:
        color = '\033[92m'  # Green
    elif score >= 60:
        color = '\033[93m'  # Yellow
    elif score >= 40:
        color = '\033[33m'  # Orange
    else:
        color = '\033[91m'  # Red

    reset = '\033[0m'
    return f"{color}{bar}{reset} {score}%"
