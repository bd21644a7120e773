# Routes package init
"""
OP-Blog API: Route Handlers
===========================

Thin APIRouters: pull data out of the request, call one service method,
shape the response. Everything except /health is mounted under
settings.api_prefix (/api/v1).

Route Inventory:
    - root.py:        GET  /api/v1
    - auth.py:        /auth/register, /auth/login, /auth/logout/{id},
                      /auth/{user_id}/verify/{token}
    - password.py:    /password/reset-password-link,
                      /password/reset-password/{user_id}/{token}
    - users.py:       /users/profile, /users/me, /users/count,
                      /users/profile/profile-photo-upload, /users/profile/{id}
    - categories.py:  /categories, /categories/{id}
    - posts.py:       /posts, /posts/{id}, /posts/update-image/{id},
                      /posts/like/{id}
    - comments.py:    /comments, /comments/post/{post_id}, /comments/{id}
    - admin.py:       /admin/info
    - health.py:      GET /health
"""
