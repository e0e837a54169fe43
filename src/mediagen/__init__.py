"""MediaGen: prompt-to-image/video generation service.

Submissions are forwarded to the provider either synchronously or as
asynchronous jobs whose completion is learnt through status polling and
provider webhooks.
"""
