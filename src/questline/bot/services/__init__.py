from .role_directory import DiscordRoleDirectory

__all__ = ["DiscordRoleDirectory"]
