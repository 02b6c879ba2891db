"""Hidden e-mail service: configuration, mailbox store and HTTP server."""