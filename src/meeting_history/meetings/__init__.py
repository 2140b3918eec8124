"""Meeting history module -- data model, schemas, visibility policy, and repository.

Provides the MeetingModel table, Pydantic schemas for the camelCase wire
format, the list visibility policy, display-name enrichment, and
MeetingRepository for async CRUD.
"""
