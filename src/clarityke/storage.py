#!/usr/bin/env python

"""XML transcripts of protocol runs.

A transcript holds only what an eavesdropper on the channel sees (the
parameters, the basis and both noisy public vectors) plus the keys each
side derived.  Secrets are never recorded.
"""

import xml.etree.ElementTree as ET

from .params import ParameterSet


NAMESPACE = 'http://www.example.org/clarityke'


def _tag(name):
    return '{%s}%s' % (NAMESPACE, name)


def _hex_list(values):
    return ' '.join('%x' % v for v in values)


def _parse_hex_list(text):
    if text is None:
        return []
    return [int(x, 16) for x in text.split()]


class Session(object):
    def __init__(self, linktype):
        self.runs = []
        self.linktype = linktype

    def add_run(self, run):
        self.runs.append(run)

    @property
    def xml(self):
        result = """<?xml version='1.0'?>

<session link='%s' xmlns='%s'>
""" % (self.linktype, NAMESPACE)
        for run in self.runs:
            result += '\t' + '\n\t'.join(run.xml.split('\n')) + "\n"

        result += '</session>'

        return result

    @staticmethod
    def from_xml(element):
        result = Session(element.attrib['link'])
        for run in element:
            result.add_run(Run.from_xml(run))

        return result

    @staticmethod
    def from_string(text):
        return Session.from_xml(ET.fromstring(text))

    @staticmethod
    def from_file(filename):
        tree = ET.ElementTree(file=filename)
        return Session.from_xml(tree.getroot())


class Run(object):
    """One protocol run: parameters, basis, messages and results."""

    def __init__(self, id, params, basis=None):
        self.id = id
        self.params = params
        self.basis = list(basis) if basis is not None else []
        self.messages = []
        self.results = []

    def add_message(self, m):
        self.messages.append(m)

    def add_result(self, result):
        self.results.append(result)

    def result_for(self, endpoint):
        for result in self.results:
            if result.endpoint == endpoint:
                return result.key
        raise KeyError(endpoint)

    @property
    def xml(self):
        result = '<run id="%d">\n' % self.id
        result += "\t<parameters>%s</parameters>\n" % self.params.to_json()
        result += "\t<basis>%s</basis>\n" % _hex_list(self.basis)

        result += "\n"

        for message in self.messages:
            result += "\t" + '\n\t'.join(message.xml.split('\n')) + "\n"

        result += "\n"

        for this_result in self.results:
            result += "\t" + "\n\t".join(this_result.xml.split('\n')) + "\n"

        result += "</run>"

        return result

    @staticmethod
    def from_xml(element):
        params = ParameterSet.from_json(
            element.find(_tag('parameters')).text, validate=False)
        run = Run(int(element.attrib['id']), params,
                  _parse_hex_list(element.find(_tag('basis')).text))

        for child in element:
            if child.tag == _tag('message'):
                run.add_message(Message.from_xml(child))
            elif child.tag == _tag('result'):
                run.add_result(Result.from_xml(child))

        return run


class Message(object):
    """A noisy public vector sent from one party to the other."""

    def __init__(self, source, destination, values):
        self.source = source
        self.destination = destination
        self.values = list(values)

    @property
    def xml(self):
        return '<message from="%s" to="%s">%s</message>' % (
            self.source,
            self.destination,
            _hex_list(self.values))

    @staticmethod
    def from_xml(element):
        return Message(
            element.attrib['from'],
            element.attrib['to'],
            _parse_hex_list(element.text))


class Result(object):
    """The key one endpoint derived, as hex, or None if it derived none."""

    def __init__(self, endpoint, key):
        self.endpoint = endpoint
        self.key = key

    @property
    def xml(self):
        if self.key is not None:
            return '<result endpoint="%s">%s</result>' \
                   % (self.endpoint, self.key)
        else:
            return '<result endpoint="%s" />' % self.endpoint

    @staticmethod
    def from_xml(element):
        if element.text is None or not element.text.strip():
            key = None
        else:
            key = element.text.strip()

        return Result(
            element.attrib['endpoint'],
            key
        )
