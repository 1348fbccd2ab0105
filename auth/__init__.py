# Auth package
from .ldap_auth import LDAPAuthenticator
from .directory_client import DirectoryClient, Ldap3DirectoryClient
from .session_manager import DirectorySessionManager, SessionRole, SessionState
from .group_resolver import GroupMembershipResolver
from .user_authenticator import UserAuthenticator
from .endpoint import select_endpoint
from .dn import extract_cn
from .exceptions import (
    DirectoryAuthError,
    NoValidEndpointError,
    DirectoryConnectionError,
    BindError,
    InvalidCredentialsError,
    SearchError,
    DirectorySearchFailedError,
    UnexpectedMatchCountError,
    UserNotFoundError,
    UserRecordNotFoundError,
    MissingDNError,
    CloseError,
)

__all__ = [
    'LDAPAuthenticator',
    'DirectoryClient',
    'Ldap3DirectoryClient',
    'DirectorySessionManager',
    'SessionRole',
    'SessionState',
    'GroupMembershipResolver',
    'UserAuthenticator',
    'select_endpoint',
    'extract_cn',
    'DirectoryAuthError',
    'NoValidEndpointError',
    'DirectoryConnectionError',
    'BindError',
    'InvalidCredentialsError',
    'SearchError',
    'DirectorySearchFailedError',
    'UnexpectedMatchCountError',
    'UserNotFoundError',
    'UserRecordNotFoundError',
    'MissingDNError',
    'CloseError',
]
