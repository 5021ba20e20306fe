"""
The main kassoc module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the operator's top-level interface,
# as it is seen by the embedding code and the tests. So, we export the individual names.

from kassoc._cogs.configs.configuration import (
    OperatorSettings,
)
from kassoc._cogs.helpers.typedefs import (
    Logger,
)
from kassoc._cogs.helpers.versions import (
    version as __version__,
)
from kassoc._cogs.clients.errors import (
    APIError,
    APIClientError,
    APIServerError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
)
from kassoc._cogs.clients.stores import (
    ResourceStore,
    APIResourceStore,
)
from kassoc._cogs.structs.associations import (
    Association,
    AssociationStatus,
)
from kassoc._cogs.structs.backends import (
    ElasticsearchBackend,
    BackendAuth,
    InlineAuth,
    SecretKeyRef,
)
from kassoc._cogs.structs.conventions import (
    MissingCredentialsError,
    MalformedCredentialsError,
)
from kassoc._cogs.structs.credentials import (
    LoginError,
    ConnectionInfo,
)
from kassoc._cogs.structs.references import (
    ObjectKey,
    Resource,
)
from kassoc._core.actions.loggers import (
    configure,
    LogFormat,
    ObjectLogger,
)
from kassoc._core.actions.requeueing import (
    Result,
    Outcome,
    result_from_status,
)
from kassoc._core.engines.watches import (
    DynamicEnqueuer,
    DynamicWatches,
    NamedWatch,
    WatchRegistrationError,
)
from kassoc._core.intents.piggybacking import (
    login,
    login_with_kubeconfig,
    login_with_service_account,
)
from kassoc._core.reactor.queueing import (
    WorkQueue,
)
from kassoc._core.reactor.reconciling import (
    AssociationReconciler,
)
from kassoc._core.reactor.running import (
    spawn_tasks,
    run_tasks,
    operator,
    run,
)

__all__ = [
    'configure', 'LogFormat', 'ObjectLogger',
    'login',
    'login_with_kubeconfig',
    'login_with_service_account',
    'LoginError',
    'ConnectionInfo',
    'spawn_tasks', 'run_tasks', 'operator', 'run',
    'OperatorSettings',
    'Logger',
    'ResourceStore', 'APIResourceStore',
    'APIError',
    'APIClientError',
    'APIServerError',
    'APIUnauthorizedError',
    'APIForbiddenError',
    'APINotFoundError',
    'APIConflictError',
    'Association', 'AssociationStatus',
    'ElasticsearchBackend', 'BackendAuth', 'InlineAuth', 'SecretKeyRef',
    'MissingCredentialsError', 'MalformedCredentialsError',
    'ObjectKey', 'Resource',
    'Result', 'Outcome', 'result_from_status',
    'DynamicEnqueuer', 'DynamicWatches', 'NamedWatch', 'WatchRegistrationError',
    'WorkQueue',
    'AssociationReconciler',
]
