from app.features.scan_profiles.models.scan_coverage import ScanCoverage

__all__ = ["ScanCoverage"]
