# Services package init
"""
OP-Blog API: Services Layer
===========================

Business rules between the routes (HTTP) and the models (persistence).
Services are stateless; each exposes a module-level singleton and takes
the request's AsyncSession as its first argument.

Service Inventory:
    - AuthService:      register, login, verify account
    - PasswordService:  reset link, link check, password reset
    - TokenService:     one-time verification/reset tokens
    - UserService:      profiles, listing, photo, account deletion
    - CategoryService:  categories (unique-index conflict translation)
    - PostService:      posts, search, images, like toggle
    - CommentService:   comments
    - AdminService:     dashboard counts
    - MailService:      SMTP delivery (aiosmtplib)
    - ImageService:     image host (Cloudinary)
"""
