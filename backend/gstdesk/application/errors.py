class GSTDeskError(Exception):
    """Base exception for GSTDesk domain errors"""
    pass


class NotFoundError(GSTDeskError):
    """Referenced entity does not exist"""
    pass


class ValidationError(GSTDeskError):
    """Input rejected by a business rule"""
    pass


class ConflictError(GSTDeskError):
    """Operation conflicts with existing data (references, unique numbers)"""
    pass


class ImportFormatError(ValidationError):
    """CSV file is missing required columns or carries unparseable values"""
    pass
