"""
Meetings app: video rooms for approved lessons.

- adapters.zego: room ids and per-participant join tokens (ZEGOCLOUD token04)
- services: room provisioning and the room event webhook state tracking
- views: POST /api/v1/zego/callback/
"""
