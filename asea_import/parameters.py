"""
Emitted-Parameter Aggregator

Reconcilers queue parameter requests while they run; the aggregator turns them
into ``AWS::SSM::Parameter`` nodes when a stack is flushed. Parameters are
created in request order and chained in batches so the deploy step does not
create them all at once and get throttled by the SSM API.
"""

from collections import OrderedDict
from typing import Dict, List, Optional

from .errors import ParameterFlushError
from .graph import ResourceNode, TemplateGraph
from .logging import get_logger
from .types import CfnType, ParameterEmissionRequest, ParameterValue

logger = get_logger(__name__)


def batch_dependency(position: int, batch_size: int = 5) -> Optional[int]:
    """1-based position the parameter at ``position`` waits for, if any.

    The first batch has no dependencies; every parameter of batch ``n`` waits
    for the first parameter of batch ``n - 1``.

    >>> [batch_dependency(p) for p in (1, 5, 6, 10, 11, 12)]
    [None, None, 1, 1, 6, 6]
    """
    if position <= batch_size:
        return None
    return ((position - 1) // batch_size - 1) * batch_size + 1


class ParameterAggregator:
    """Collects parameter requests per scope and materializes them on flush."""

    def __init__(self, batch_size: int = 5):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size
        self._pending: "OrderedDict[str, List[ParameterEmissionRequest]]" = OrderedDict()
        self._graphs: Dict[str, TemplateGraph] = {}
        self.created: List[ParameterEmissionRequest] = []

    def add(
        self,
        graph: TemplateGraph,
        logical_id: str,
        parameter_name: str,
        string_value: ParameterValue,
    ) -> ParameterEmissionRequest:
        request = ParameterEmissionRequest(logical_id, parameter_name, string_value)
        self.queue(graph, request)
        return request

    def queue(self, graph: TemplateGraph, request: ParameterEmissionRequest):
        self._graphs.setdefault(graph.scope_key, graph)
        self._pending.setdefault(graph.scope_key, []).append(request)
        logger.debug(
            "Parameter queued",
            scope_key=graph.scope_key,
            logical_id=request.logical_id,
            parameter_name=request.parameter_name,
        )

    def pending(self, scope_key: Optional[str] = None) -> List[ParameterEmissionRequest]:
        if scope_key is not None:
            return list(self._pending.get(scope_key, []))
        return [request for requests in self._pending.values() for request in requests]

    def flush(self) -> List[ResourceNode]:
        """Create every queued parameter, scope by scope, and clear the queue."""
        nodes = []
        for scope_key, requests in self._pending.items():
            nodes.extend(self._flush_scope(self._graphs[scope_key], requests))
        self._pending.clear()
        self._graphs.clear()
        return nodes

    def _flush_scope(
        self, graph: TemplateGraph, requests: List[ParameterEmissionRequest]
    ) -> List[ResourceNode]:
        nodes = []
        for position, request in enumerate(requests, start=1):
            properties = {
                "Name": request.parameter_name,
                "Value": request.string_value,
                "Type": "String",
            }
            node = graph.get(request.logical_id)
            if node is not None and node.resource_type == CfnType.SSM_PARAMETER:
                # Emitted by an earlier run over the same template
                node.properties.update(properties)
            else:
                node = graph.add_resource(request.logical_id, CfnType.SSM_PARAMETER, properties)

            dependency = batch_dependency(position, self.batch_size)
            if dependency is not None:
                target = requests[dependency - 1].logical_id
                if target not in graph:
                    raise ParameterFlushError(request.logical_id, target, scope_key=graph.scope_key)
                node.add_dependency(target)

            nodes.append(node)
            self.created.append(request)

        logger.info("Parameters created", scope_key=graph.scope_key, count=len(nodes))
        return nodes
