"""
Services package - Production orchestration and its collaborators

Organized by domain responsibility:

Formats:
    - formats: Format registry and the router that picks a pipeline per request

Pipelines (Research -> Script -> Visuals -> Audio -> Assembly):
    - pipelines: One pipeline per format plus the story sub-pipeline
    - research: Grounded research and reference-document indexing
    - assembly: Assembly rules, beat maps and graceful degradation

Infrastructure (Technical Concerns):
    - infrastructure/orchestration: Execution engine, checkpoints, production registry
    - infrastructure/storage: Session repository and debounced session stores
    - infrastructure/parsing: Lenient JSON extraction from model output

Errors:
    - errors: Error aggregation, rate-limit detection and recovery options

Use Cases (Application Layer):
    - use_cases: Production and session operations behind the HTTP routes
"""
