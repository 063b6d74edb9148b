class PairingError(Exception):
    pass


class InsufficientUsersException(PairingError):
    def __init__(self, organization_id: str, user_count: int) -> None:
        self.organization_id = organization_id
        self.user_count = user_count
        super().__init__(
            f"Not enough eligible users to create pairs in organization {organization_id}: {user_count} eligible"
        )


class PairingConstraintException(PairingError):
    pass


class SettingsValidationError(ValueError):
    pass
