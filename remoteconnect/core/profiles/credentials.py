from __future__ import annotations

import keyring
import keyring.errors

from core.profiles.models import ServerProfile


class CredentialService:
    _SERVICE_NAME = "RemoteConnect"

    def set_password(self, profile: ServerProfile, password: str) -> None:
        keyring.set_password(self._SERVICE_NAME, profile.account_key, password)

    def get_password(self, profile: ServerProfile) -> str | None:
        return keyring.get_password(self._SERVICE_NAME, profile.account_key)

    def delete_password(self, profile: ServerProfile) -> None:
        try:
            keyring.delete_password(self._SERVICE_NAME, profile.account_key)
        except keyring.errors.PasswordDeleteError:
            pass

    def move_password(self, old_profile: ServerProfile, new_profile: ServerProfile) -> bool:
        if old_profile.account_key == new_profile.account_key:
            return False

        password = self.get_password(old_profile)
        if password is None:
            return False

        self.set_password(new_profile, password)
        self.delete_password(old_profile)
        return True
