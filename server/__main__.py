if __name__ == '__main__':
    from argparse import ArgumentParser, RawTextHelpFormatter

    import uvicorn

    from server.models import Settings

    settings = Settings()
    argparser = ArgumentParser(
        prog='python -m server',
        formatter_class=RawTextHelpFormatter,
        description='A server returning the latest public repositories with their languages',
        add_help=False,
        )

    argparser.add_argument(
        '-h',
        '--help',
        action='help',
        help='If specified, the script shows this help message and exits.',
        )
    argparser.add_argument(
        '--host',
        default=settings.listen_host,
        help='The host to listen on.\n'
             f'Defaults to {settings.listen_host} '
             f'or the value of environmental variable LISTEN_HOST.',
        )
    argparser.add_argument(
        '--port',
        type=int,
        default=settings.listen_port,
        help='The port to listen on.\n'
             f'Defaults to {settings.listen_port} '
             f'or the value of environmental variable LISTEN_PORT.',
        )

    params = argparser.parse_args()
    # Logging is configured by the application on startup
    uvicorn.run('api:app', host=params.host, port=params.port, log_config=None)
