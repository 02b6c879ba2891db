"""Hidden lake service: configuration, carried HTTP requests and the forwarding node."""