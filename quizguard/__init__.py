"""quizguard - integrity monitoring for timed quiz attempts"""

__version__ = "1.0.0"
