# Auth package: password hashing, JWTs and the authorization dependency chain
