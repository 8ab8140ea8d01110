from devdose.quality.scorer import QualityScorer
from devdose.quality.service import QualityService
from devdose.quality.syntax_validator import SyntaxValidator

__all__ = ["QualityScorer", "QualityService", "SyntaxValidator"]
