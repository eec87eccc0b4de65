import os
import platform

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from validate import Validator

# The default extension for configuration files
config_extension = '.cfg'

# the schema that ships with the package
default_schema = os.path.join(os.path.dirname(__file__), 'pbus.schema' + config_extension)


def config_flavor(name, flavor=None):
    configname = name if not flavor else name + '.' + flavor
    return configname


def config_filename(name, directory=None):
    """
    Determines the location of a config file in the given directory.
    """
    config_file = os.path.join(directory, name + config_extension)
    return config_file


def load_config_file_base(file, must_exist=True):
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :return: The ConfigObj instance for the file.
    """
    try:
        return ConfigObj(file, interpolation='Template', file_error=must_exist) \
            if must_exist or os.path.exists(file) else ConfigObj()
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def config_flavor_file(name, directory, subpart=None) -> ConfigObj:
    """
    Loads a specialization of a config file. The configuration file is expected to be named
    after the base, followed by a period and then the specialization, if the specialization is given,
    otherwise just the base name. A missing file gives an empty configuration.
    """
    configname = config_flavor(name, subpart)
    file = config_filename(configname, directory)
    return load_config_file_base(file, False)


def map_os_name(name):
    """
    >>> map_os_name('Windows')
    'windows'
    >>> map_os_name("Darwin")
    'osx'
    """
    name = name.lower()
    if name == 'darwin':
        name = 'osx'
    return name


def os_name():
    return map_os_name(platform.system())


def schema_file(name, directory):
    """
    The schema for a configuration: <name>.schema.cfg beside the configuration if present,
    otherwise the packaged schema.
    """
    file = config_filename(config_flavor(name, 'schema'), directory)
    return file if os.path.exists(file) else default_schema


def describe_errors(config, result):
    """
    >>> describe_errors(ConfigObj(), False)
    'no values'
    """
    if result is False:
        return 'no values'
    problems = []
    for sections, key, error in flatten_errors(config, result):
        location = '/'.join(sections + ([key] if key is not None else []))
        problems.append('%s: %s' % (location, error if error is not False else 'missing'))
    return ', '.join(problems)


def load_config(name, directory, configspec=None, user_directory='~'):
    """
        Loads all the configuration files that relate to the given name.
        Configurations are loaded in this order, later files overriding earlier ones:
        - the default specialization
        - the platform specialization
        - the user override
        - the base configuration
        The configurations are flattened into a single configuration, and then validated
        against a configuration specification "schema", which also supplies default values.
    :param directory: the location of the configuration files
    :param configspec: the schema file. Defaults to the schema found by schema_file()
    :raises ConfigObjError: when the configuration fails validation
    """
    local_config = config_flavor_file(name, directory)
    default_config = config_flavor_file(name, directory, 'default')
    platform_config = config_flavor_file(name, directory, os_name())
    user_config = load_config_file_base(os.path.join(os.path.expanduser(user_directory),
                                                     name + config_extension), must_exist=False)
    config = ConfigObj(configspec=configspec or schema_file(name, directory))
    config.merge(default_config)
    config.merge(platform_config)
    config.merge(user_config)
    config.merge(local_config)

    validator = Validator()
    result = config.validate(validator, preserve_errors=True)
    if result is not True:
        raise ConfigObjError("the config file %s failed validation: %s" % (name, describe_errors(config, result)))
    return config


def fetch_conf_path(conf: Section, path):
    """
    Retrieves the named configuration section
    :param conf:        The root configuration
    :param path:        An iterable that lists the names of the sections to resolve
    :return: The configuration section identified by the path, or None
    """
    for p in path:    # lookup specific section
        conf = conf.get(p, None)
        if conf is None:
            return
    return conf


def apply_conf_path(conf: Section, name_parts, target):
    """
    Applies a configuration path to a given target object
    :param conf:        The root configuration object
    :param name_parts:  The path of the configuration to apply
    :param target:      The target object that receives the configured values
    :return: True if the section was found
    """
    conf = fetch_conf_path(conf, name_parts)
    if conf is not None:
        apply_conf(conf, target)
    return conf is not None


def apply_conf(conf: Section, target):
    """
    Applies the attributes contained in a configuration object to a target object.
    It does this by iterating over the items in the configuration and setting any attributes with the same name.
    """
    for k, v in conf.items():
        if hasattr(target, k):
            setattr(target, k, v)
