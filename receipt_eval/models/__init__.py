# Provider models
from .base import OCRModel, CompletionModel
