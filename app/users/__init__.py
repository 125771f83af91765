"""
Users app: the User Directory.

This app handles:
- The local user record mirrored from the external identity provider
- Identity-provider webhook sync (created/updated/deleted events)
- Bearer-token authentication against the identity provider's JWTs
- User lookup and the searchable people list

Related apps:
    - chat: presence flags on User are driven by chat.services.PresenceService

Usage:
    from users.services import UserService

    user = UserService.upsert(
        external_id="user_2abc",
        email="alice@example.com",
        display_name="Alice",
        avatar_url="",
    )
"""
