"""
Exception types shared by services, workflows and the bot surface.

Guard failures carry a short message meant for the user. Everything else is
logged with its cause and answered with a generic error reply.
"""


class ServerListError(Exception):
    """Base class for all serverlist errors."""


class GuardFailure(ServerListError):
    """Authorization or precondition not met. Nothing was mutated."""


class NotInServer(GuardFailure):
    def __init__(self):
        super().__init__("This command can only be used in a server.")


class ServerNotListed(GuardFailure):
    def __init__(self):
        super().__init__("This server isn't listed yet. Run `/setup` if you wish to list it.")


class NotInTeam(GuardFailure):
    def __init__(self):
        super().__init__("You are not in this server's team!")


class MissingCapability(GuardFailure):
    def __init__(self, capability: str):
        self.capability = capability
        super().__init__(f"You must have the ``{capability}`` permission to perform this operation!")


class InvalidInput(GuardFailure):
    """User supplied form data outside the accepted bounds."""


class SlugTaken(ServerListError):
    """The requested vanity code already exists."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Vanity '{code}' is already taken")


class DataIntegrityViolation(ServerListError):
    """A value cannot be stored without corrupting it (e.g. int32 overflow)."""


class ExternalFailure(ServerListError):
    """Network, process or platform failure."""


class ImageConversionError(ExternalFailure):
    pass


class InviteResolutionError(ExternalFailure):
    """An invite URL could not be resolved to a permanent platform invite."""


class InvalidInviteDescriptor(ServerListError):
    pass


class CreateInviteError(ServerListError):
    """Base for invite creation failures, each with a stable code."""

    code = "Generic"
    default_message = "Failed to create invite"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ServerNotFound(CreateInviteError):
    code = "ServerNotFound"
    default_message = "Server not found"


class ServerNeedsLoginForInvite(CreateInviteError):
    code = "ServerNeedsLoginForInvite"
    default_message = "In order to view this server, you must login!"


class UserIsBlacklisted(CreateInviteError):
    code = "UserIsBlacklisted"
    default_message = "User is blacklisted from this server"


class ServerHasNoInvite(CreateInviteError):
    code = "ServerHasNoInvite"
    default_message = "Server has no invite"


class ServerHasInvalidInvite(CreateInviteError):
    code = "ServerHasInvalidInvite"
    default_message = "Server has an invalid invite"


class ServerTypeNotApprovedOrCertified(CreateInviteError):
    code = "ServerTypeNotApprovedOrCertified"
    default_message = "Server is not approved or certified"


class ServerStateNotPublic(CreateInviteError):
    code = "ServerStateNotPublic"
    default_message = "Server is not public"


class InvalidSession(ServerListError):
    """An API token was supplied but matches no live session."""
