"""
Reconciliation of the associations: the operator's main state machine.

Every reconciliation gets only the association's key. Everything else is read
from the store anew: the association itself, the Elasticsearch cluster with its
secrets, and the Kibana. The reconciliation is idempotent: if nothing has changed
since the previous run, nothing is written.

The Kibana's backend configuration is rewritten only when it differs from
the desired one; the association's status is patched only when it differs from
the stored one. Otherwise, the operator's own writes would trigger the watch-events,
which would trigger new reconciliations, which would write again, and so on.

The errors of the reconciliation are not raised but returned together with
the scheduling decision, so that the status is stored even for failed runs.
The cancellations (e.g. on timeouts or on exiting) are never intercepted.
"""
import copy
import itertools
import time

from kassoc._cogs.clients import errors, stores
from kassoc._cogs.configs import configuration
from kassoc._cogs.helpers import typedefs
from kassoc._cogs.structs import associations, backends, conventions, dicts, \
                                 finalizers, patches, references
from kassoc._core.actions import finalizing, loggers, requeueing
from kassoc._core.engines import watches

ELASTICSEARCH_WATCH_KIND = 'es'
KIBANA_WATCH_KIND = 'kb'


def elasticsearch_watch_name(key: references.ObjectKey) -> str:
    return watches.watch_name(key, ELASTICSEARCH_WATCH_KIND)


def kibana_watch_name(key: references.ObjectKey) -> str:
    return watches.watch_name(key, KIBANA_WATCH_KIND)


class AssociationReconciler:

    def __init__(
            self,
            *,
            store: stores.ResourceStore,
            dynamic_watches: watches.DynamicWatches,
            settings: configuration.OperatorSettings,
    ) -> None:
        super().__init__()
        self.store = store
        self.watches = dynamic_watches
        self.settings = settings
        self._iterations = itertools.count(start=1)

    async def reconcile(self, key: references.ObjectKey) -> requeueing.Outcome:
        iteration = next(self._iterations)
        logger = loggers.ObjectLogger(resource=references.ASSOCIATIONS, key=key)
        started = time.monotonic()
        logger.info(f"Start reconcile iteration {iteration}.")
        try:
            return await self._reconcile(key, logger=logger)
        finally:
            duration = time.monotonic() - started
            logger.info(f"End reconcile iteration {iteration}, took {duration:.3f}s.")

    async def _reconcile(
            self,
            key: references.ObjectKey,
            *,
            logger: typedefs.Logger,
    ) -> requeueing.Outcome:

        # Already deleted objects need no further work: the finalizer has done the cleanup.
        try:
            body = await self.store.read(references.ASSOCIATIONS, key, logger=logger)
        except errors.APINotFoundError:
            logger.debug("The association is absent. Nothing to do.")
            return requeueing.Outcome(requeueing.NO_REQUEUE)
        except Exception as e:
            return requeueing.Outcome(requeueing.NO_REQUEUE, e)

        if associations.is_paused(body, self.settings.association.pause_annotation):
            logger.info("The association is paused. Skipping.")
            return requeueing.Outcome(requeueing.PAUSE_REQUEUE)

        try:
            await finalizing.handle(
                store=self.store,
                resource=references.ASSOCIATIONS,
                body=body,
                finalizer=self.watch_finalizer(key),
                logger=logger,
            )
        except Exception as e:
            return requeueing.Outcome(requeueing.DEFAULT_REQUEUE, e)

        if finalizers.is_deletion_ongoing(body):
            return requeueing.Outcome(requeueing.NO_REQUEUE)

        association = associations.Association.from_body(body)
        new_status, error = await self.reconcile_internal(association, logger=logger)

        old_raw_status = body.get('status') or {}
        new_raw_status = associations.build_status(body, new_status)
        if not dicts.deep_equal(old_raw_status, new_raw_status):
            patch = patches.Patch()
            patch.status['associationStatus'] = new_status.value
            try:
                await self.store.patch(references.ASSOCIATIONS, key, patch, logger=logger)
            except Exception as e:
                if error is not None:
                    logger.error(f"Reconciliation has failed before the status update: {error!r}")
                return requeueing.Outcome(requeueing.DEFAULT_REQUEUE, e)
            logger.info(f"The association status is now {new_status.value!r}.")

        return requeueing.Outcome(requeueing.result_from_status(new_status), error)

    async def reconcile_internal(
            self,
            association: associations.Association,
            *,
            logger: typedefs.Logger,
    ) -> tuple[associations.AssociationStatus, Exception | None]:
        Status = associations.AssociationStatus

        # Re-reconcile this association whenever its cluster or its Kibana changes.
        try:
            self.watches.elasticsearch_clusters.add_handler(watches.NamedWatch(
                name=elasticsearch_watch_name(association.key),
                watched=association.elasticsearch,
                watcher=association.key,
            ))
            self.watches.kibanas.add_handler(watches.NamedWatch(
                name=kibana_watch_name(association.key),
                watched=association.kibana,
                watcher=association.key,
            ))
        except watches.WatchRegistrationError as e:
            return Status.FAILED, e

        # The cluster can be deleted or not yet created. Re-check in a while.
        try:
            await self.store.read(references.ELASTICSEARCH_CLUSTERS, association.elasticsearch,
                                  logger=logger)
        except errors.APINotFoundError:
            logger.info(f"Elasticsearch cluster {association.elasticsearch} is not found.")
            return Status.PENDING, None
        except Exception as e:
            return Status.FAILED, e

        # The cluster's secrets can be not yet created by the Elasticsearch operator.
        try:
            desired = await self.build_backend(association.elasticsearch, logger=logger)
        except (errors.APINotFoundError, conventions.MissingCredentialsError) as e:
            return Status.PENDING, e
        except Exception as e:
            return Status.FAILED, e

        try:
            kibana = await self.store.read(references.KIBANAS, association.kibana, logger=logger)
        except errors.APINotFoundError as e:
            return Status.PENDING, e
        except Exception as e:
            return Status.FAILED, e

        kibana_spec = kibana.get('spec') or {}
        current = backends.ElasticsearchBackend.from_raw(kibana_spec.get('elasticsearch'))
        if current != desired:
            logger.info("Updating Kibana spec with Elasticsearch backend configuration.")
            updated = copy.copy(kibana)  # shallow: only the spec is replaced.
            updated['spec'] = dict(kibana_spec, elasticsearch=desired.as_raw())
            try:
                await self.store.replace(references.KIBANAS, updated, logger=logger)
            except Exception as e:
                return Status.PENDING, e

        return Status.ESTABLISHED, None

    async def build_backend(
            self,
            cluster: references.ObjectKey,
            *,
            logger: typedefs.Logger,
    ) -> backends.ElasticsearchBackend:
        users_key = conventions.internal_users_secret_key(cluster)
        users_secret = await self.store.read(references.SECRETS, users_key, logger=logger)
        username = conventions.INTERNAL_KIBANA_SERVER_USERNAME
        password = conventions.get_secret_value(users_secret, username)

        # Only the existence of the CA secret matters: Kibana mounts it by name.
        ca_key = conventions.ca_cert_secret_key(cluster)
        await self.store.read(references.SECRETS, ca_key, logger=logger)

        return backends.ElasticsearchBackend(
            url=conventions.external_service_url(cluster),
            auth=backends.BackendAuth(inline=backends.InlineAuth(username, password)),
            ca_cert_secret=ca_key.name,
        )

    def watch_finalizer(self, key: references.ObjectKey) -> finalizing.Finalizer:
        """
        Stop watching the cluster & Kibana of a deleted association.

        Removal of absent watches is not an error, so the cleanup can be repeated.
        """
        async def execute() -> None:
            self.watches.kibanas.remove_handler_for_key(kibana_watch_name(key))
            self.watches.elasticsearch_clusters.remove_handler_for_key(elasticsearch_watch_name(key))

        return finalizing.Finalizer(name=self.settings.persistence.finalizer, execute=execute)
