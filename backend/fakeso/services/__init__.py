# Services package init
"""
FakeSO Backend — Services Layer
=================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
Why:   Routes handle HTTP, services handle the rules of the Q&A site.
How:   Each service method receives the request's AsyncSession, applies its
       rules, and returns a response schema or raises a FakeSOError.

Service Inventory:
    - question_filters:     pure search / askedBy / ordering functions
    - QuestionService:      add, list (with visibility), open + count views
    - TagService:           get-or-create tags, tag counts
    - VoteService:          up/down vote toggling
    - AttachmentService:    answers and comments
    - UserService:          accounts, profile, symmetric friend edge
    - NotificationService:  friend-request state machine
    - EventBus:             real-time fan-out to WebSocket clients
"""
