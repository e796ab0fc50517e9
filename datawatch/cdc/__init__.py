from .inspector import CDCInspector, SingleResultAdapter, SingleResultInspector, aggregate_results

__all__ = ['CDCInspector', 'SingleResultAdapter', 'SingleResultInspector', 'aggregate_results']
